# Copyright (c) 2009, Giampaolo Rodola'. All rights reserved.
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

"""Linux platform implementation."""

import errno
import functools
import os
import sys

from ._common import ProcessEnumerator
from ._common import bcat
from ._common import debug
from ._common import decode
from ._common import precord
from ._exceptions import AccessDenied
from ._exceptions import EnumerationError
from ._exceptions import NoSuchProcess


__extra__all__ = ['PROCFS_PATH']


# ===================================================================
# --- utils
# ===================================================================


def get_procfs_path():
    """Return updated procfs path (it can be changed by the user)."""
    return sys.modules['pidof'].PROCFS_PATH


def wrap_exceptions(fun):
    """Decorator which translates bare OSError exceptions into
    NoSuchProcess and AccessDenied.
    """

    @functools.wraps(fun)
    def wrapper(self, *args, **kwargs):
        try:
            return fun(self, *args, **kwargs)
        except OSError as err:
            # ENOENT (no such file or directory) gets raised on open().
            # ESRCH (no such process) can get raised on read() if
            # process is gone in meantime.
            if err.errno in (errno.ENOENT, errno.ESRCH):
                raise NoSuchProcess(self.pid, self._name)
            if err.errno in (errno.EPERM, errno.EACCES):
                raise AccessDenied(self.pid, self._name)
            raise

    return wrapper


# ===================================================================
# --- processes
# ===================================================================


class Process:
    """Linux process implementation."""

    __slots__ = ["pid", "_name", "_procfs_path"]

    def __init__(self, pid):
        self.pid = pid
        self._name = None
        self._procfs_path = get_procfs_path()

    @wrap_exceptions
    def name(self):
        # /proc/<pid>/comm is the short command name, truncated by the
        # kernel to 15 chars
        data = bcat("%s/%s/comm" % (self._procfs_path, self.pid))
        self._name = decode(data).strip()
        return self._name

    @wrap_exceptions
    def cmdline(self):
        data = decode(bcat("%s/%s/cmdline" % (self._procfs_path, self.pid)))
        if not data:
            # may happen in case of zombie process or kernel thread
            return []
        if data.endswith('\x00'):
            data = data[:-1]
        return data.split('\x00')

    def as_record(self):
        return precord(self.pid, self.name(), self.cmdline())


class LinuxEnumerator(ProcessEnumerator):
    """Enumerate processes by reading the /proc filesystem."""

    Process = Process
    skip_kernel_threads = True

    def pids(self):
        """Returns a list of PIDs currently running on the system."""
        procfs_path = get_procfs_path()
        try:
            names = os.listdir(os.fsencode(procfs_path))
        except OSError as err:
            debug(err)
            raise EnumerationError(
                "can't list %s: %s" % (procfs_path, err.strerror),
                errno=err.errno,
            )
        return [int(x) for x in names if x.isdigit()]


Enumerator = LinuxEnumerator
