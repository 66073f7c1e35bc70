#!/usr/bin/env python3

# Copyright (c) 2009, Giampaolo Rodola', karthikrev. All rights reserved.
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.


"""A clone of 'pidof' cmdline utility (this script can't be named
pidof.py as it would shadow the pidof package).

$ findproc.py python
1119 1120 1121 1125 1127 1129 1133 1134 1136 1138 1140
$ findproc.py --exact myscript.py
10301
"""

import sys

from pidof._cli import main


if __name__ == '__main__':
    sys.exit(main())
