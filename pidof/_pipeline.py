# Copyright (c) 2009, Giampaolo Rodola'. All rights reserved.
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

"""Post-processing of the PIDs returned by a ProcessEnumerator:
range filtering, self exclusion, ordering, truncation, signaling and
output formatting.
"""

import json
import os
import signal
from collections import namedtuple

from ._common import debug


# signal sent by kill_pids()
TERM_SIGNAL = signal.SIGTERM

# PIDs are ordered by their decimal string representation, not by
# their numeric value: "10" sorts before "9"
PID_SORT_KEY = str

# run() options
pidopts = namedtuple(
    'pidopts',
    ['single', 'kill', 'exact', 'ignore_self', 'min_pid', 'max_pid'],
)
pidopts.__new__.__defaults__ = (False, False, False, False, 0, 0)


def filter_range(pids, min_pid=0, max_pid=0):
    """Keep the PIDs within [min_pid, max_pid]. A bound <= 0 means
    no bound.
    """
    return [
        pid
        for pid in pids
        if (min_pid <= 0 or pid >= min_pid)
        and (max_pid <= 0 or pid <= max_pid)
    ]


def exclude_pid(pids, pid):
    return [x for x in pids if x != pid]


def sort_pids(pids):
    return sorted(pids, key=PID_SORT_KEY)


def kill_pids(pids, sig=TERM_SIGNAL):
    """Send 'sig' to every PID in 'pids' and return the list of PIDs
    which were signaled. A process which is gone or which we are not
    allowed to signal is skipped; the others are still signaled.
    """
    ret = []
    for pid in pids:
        try:
            os.kill(pid, sig)
        except OSError as err:
            debug(err)
        else:
            ret.append(pid)
    return ret


def format_line(pids):
    return " ".join(str(pid) for pid in pids)


def format_json(pids):
    return json.dumps([str(pid) for pid in pids])


def run(enumerator, target, opts, self_pid):
    """Find the processes matching 'target' and apply 'opts' (a
    pidopts instance) to them. 'self_pid' is the PID excluded when
    opts.ignore_self is set.

    Return the resulting list of PIDs; an empty list means that no
    process was found. EnumerationError is propagated.

    Note: processes are signaled after the snapshot is taken, so a
    PID may be gone (or even reused) by the time it is signaled.
    """
    pids = enumerator.find_pids(target, exact=opts.exact)
    pids = filter_range(pids, opts.min_pid, opts.max_pid)
    if opts.ignore_self:
        pids = exclude_pid(pids, self_pid)
    if not pids:
        return []
    pids = sort_pids(pids)
    if opts.single:
        pids = pids[:1]
    if opts.kill:
        kill_pids(pids)
    return pids
