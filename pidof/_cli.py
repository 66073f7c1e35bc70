# Copyright (c) 2009, Giampaolo Rodola'. All rights reserved.
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

"""Find the PIDs of running processes by name.

$ pidof python
1140 1138 1136 1134 1133 1129 1127 1125 1121 1120 1119
$ pidof --json --single-shot python
["1119"]

Exit status is 0 if at least one process was found, 1 if none was
found (or the process table could not be read) and 2 on usage errors.
"""

import argparse
import os
import sys

import pidof
from pidof._pipeline import format_json
from pidof._pipeline import format_line
from pidof._pipeline import pidopts
from pidof._pipeline import run


def build_parser():
    parser = argparse.ArgumentParser(
        prog="pidof",
        usage="%(prog)s [OPTIONS] <process-name>",
        description="find the PIDs of running processes by name",
    )
    parser.add_argument(
        "names", nargs="*", metavar="process-name",
        help="the process name to look for")
    parser.add_argument(
        "-s", "--single-shot", dest="single", action="store_true",
        help="return only one PID")
    parser.add_argument(
        "-k", "--kill", action="store_true",
        help="send SIGTERM to matched processes")
    parser.add_argument(
        "-x", "--exact", action="store_true",
        help="match exact command name including scripts")
    parser.add_argument(
        "-e", "--ignore-self", action="store_true",
        help="exclude pidof itself from results")
    parser.add_argument(
        "-j", "--json", action="store_true",
        help="output as JSON array")
    parser.add_argument(
        "--min-pid", type=int, default=0, metavar="N",
        help="only include PIDs >= N (0 = no limit)")
    parser.add_argument(
        "--max-pid", type=int, default=0, metavar="N",
        help="only include PIDs <= N (0 = no limit)")
    parser.add_argument(
        "-V", "--version", action="version",
        version="%(prog)s " + pidof.__version__)
    return parser


def main(argv=None, enumerator=None, self_pid=None):
    """Command line entry point; return the exit status.
    'enumerator' and 'self_pid' default to the platform enumerator
    and to the PID of the current process.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if len(args.names) != 1:
        parser.error("expected exactly one process name, got %s"
                     % len(args.names))
    if enumerator is None:
        enumerator = pidof.get_enumerator()
    if self_pid is None:
        self_pid = os.getpid()

    opts = pidopts(
        single=args.single,
        kill=args.kill,
        exact=args.exact,
        ignore_self=args.ignore_self,
        min_pid=args.min_pid,
        max_pid=args.max_pid,
    )
    try:
        pids = run(enumerator, args.names[0], opts, self_pid)
    except pidof.EnumerationError as err:
        print("error: %s" % err, file=sys.stderr)
        return 1
    if not pids:
        return 1

    if args.json:
        print(format_json(pids))
    else:
        print(format_line(pids))
    return 0
