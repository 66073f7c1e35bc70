#!/usr/bin/env python3

# Copyright (c) 2009, Giampaolo Rodola'. All rights reserved.
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

"""Kill processes by name (SIGTERM)."""

import os
import sys

import pidof
from pidof._pipeline import exclude_pid
from pidof._pipeline import kill_pids


def main():
    if len(sys.argv) != 2:
        sys.exit(f"usage: {__file__} name")
    else:
        name = sys.argv[1]

    try:
        pids = exclude_pid(pidof.pids_of(name), os.getpid())
    except pidof.EnumerationError as err:
        sys.exit(f"error: {err}")
    killed = kill_pids(pids)
    if not killed:
        sys.exit(f"{name}: no process found")
    else:
        sys.exit(0)


if __name__ == '__main__':
    main()
