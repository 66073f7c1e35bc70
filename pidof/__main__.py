# Copyright (c) 2009, Giampaolo Rodola'. All rights reserved.
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

"""
Find the PIDs of running processes by name. This is invoked by:

$ python -m pidof <process-name>
"""

import sys

from pidof._cli import main


sys.exit(main())
