# Copyright (c) 2009, Giampaolo Rodola'. All rights reserved.
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

"""macOS platform implementation.

The process table is read via sysctl(3), called through ctypes:

* CTL_KERN / KERN_PROC / KERN_PROC_ALL returns an array of
  struct kinfo_proc, one per process
* CTL_KERN / KERN_PROCARGS2 / <pid> returns the argument area of a
  process, laid out as: int argc, executable path, NUL padding,
  argc NUL-terminated arguments, then the environment
"""

import ctypes
import errno
import functools
import os
import struct

from ._common import ProcessEnumerator
from ._common import base_name
from ._common import debug
from ._common import decode
from ._common import memoize
from ._common import precord
from ._exceptions import AccessDenied
from ._exceptions import EnumerationError
from ._exceptions import NoSuchProcess


__extra__all__ = []


# ===================================================================
# --- constants
# ===================================================================


# sys/sysctl.h
CTL_KERN = 1
KERN_ARGMAX = 8
KERN_PROC = 14
KERN_PROC_ALL = 0
KERN_PROCARGS2 = 49

# sizeof(struct kinfo_proc) and offsetof(kp_proc.p_pid) on 64-bit
# macOS (both x86_64 and arm64)
KINFO_PROC_SIZE = 648
KINFO_PROC_PID_OFFSET = 40


# ===================================================================
# --- sysctl wrappers
# ===================================================================


@memoize
def get_libc():
    libc = ctypes.CDLL(None, use_errno=True)
    fun = libc.sysctl
    fun.argtypes = [
        ctypes.POINTER(ctypes.c_int),  # name
        ctypes.c_uint,  # namelen
        ctypes.c_void_p,  # oldp
        ctypes.POINTER(ctypes.c_size_t),  # oldlenp
        ctypes.c_void_p,  # newp
        ctypes.c_size_t,  # newlen
    ]
    fun.restype = ctypes.c_int
    return libc


def raise_from_errno():
    err = ctypes.get_errno()
    raise OSError(err, os.strerror(err))


def _call(mib, buf, size):
    cmib = (ctypes.c_int * len(mib))(*mib)
    ret = get_libc().sysctl(cmib, len(mib), buf, ctypes.byref(size), None, 0)
    if ret != 0:
        raise_from_errno()


def sysctl_size(mib):
    """Return the buffer size needed to hold the 'mib' value."""
    size = ctypes.c_size_t(0)
    _call(mib, None, size)
    return size.value


def sysctl(mib, bufsize=None):
    """Call sysctl(3) with the 'mib' list of integers and return the
    result as bytes. If 'bufsize' is not given the needed size is
    asked to the kernel first.
    Raises OSError on failure.
    """
    if bufsize is None:
        bufsize = sysctl_size(mib)
    buf = ctypes.create_string_buffer(bufsize)
    size = ctypes.c_size_t(bufsize)
    _call(mib, buf, size)
    return buf.raw[:size.value]


@memoize
def arg_max():
    """Maximum size of the argument area of a process."""
    return struct.unpack("i", sysctl([CTL_KERN, KERN_ARGMAX], 4))[0]


def kinfo_proc_all():
    """Return the raw array of struct kinfo_proc for all processes."""
    mib = [CTL_KERN, KERN_PROC, KERN_PROC_ALL]
    while True:
        needed = sysctl_size(mib)
        # processes may be spawned in between the two calls
        try:
            return sysctl(mib, needed + needed // 10)
        except OSError as err:
            if err.errno != errno.ENOMEM:
                raise
            debug("process table grew while reading it; retrying")


def procargs(pid):
    """Return the raw KERN_PROCARGS2 buffer of a process."""
    return sysctl([CTL_KERN, KERN_PROCARGS2, pid], arg_max())


def parse_kinfo_pids(data):
    """Extract the PIDs from a raw array of struct kinfo_proc."""
    count = len(data) // KINFO_PROC_SIZE
    return [
        struct.unpack_from(
            "i", data, (i * KINFO_PROC_SIZE) + KINFO_PROC_PID_OFFSET
        )[0]
        for i in range(count)
    ]


def parse_procargs(data):
    """Parse a KERN_PROCARGS2 buffer and return an (exe, argv) tuple.

    The NUL padding after the executable path can't be told apart
    from empty leading arguments, so those are consumed together with
    it. Each empty argument lost this way shifts one environment
    string into the returned argv (e.g. a process started with
    `exec -a "" sh foo`).
    """
    if len(data) < 4:
        raise ValueError("procargs buffer too short (%s bytes)" % len(data))
    argc = struct.unpack_from("i", data)[0]
    exe, _, rest = data[4:].partition(b'\x00')
    # the executable path is NUL padded up to word alignment
    rest = rest.lstrip(b'\x00')
    argv = rest.split(b'\x00')[:argc] if argc > 0 else []
    return decode(exe), [decode(x) for x in argv]


# ===================================================================
# --- processes
# ===================================================================


def wrap_exceptions(fun):
    """Decorator which translates bare OSError exceptions into
    NoSuchProcess and AccessDenied.
    """

    @functools.wraps(fun)
    def wrapper(self, *args, **kwargs):
        try:
            return fun(self, *args, **kwargs)
        except OSError as err:
            if err.errno == errno.ESRCH:
                raise NoSuchProcess(self.pid, self._name)
            # KERN_PROCARGS2 fails with EINVAL for processes owned by
            # other users and for zombies
            if err.errno in (errno.EPERM, errno.EACCES, errno.EINVAL):
                raise AccessDenied(self.pid, self._name)
            raise

    return wrapper


class Process:
    """macOS process implementation."""

    __slots__ = ["pid", "_name", "_procargs"]

    def __init__(self, pid):
        self.pid = pid
        self._name = None
        self._procargs = None

    def _get_procargs(self):
        # both name() and cmdline() come from the same sysctl call
        if self._procargs is None:
            try:
                self._procargs = parse_procargs(procargs(self.pid))
            except ValueError as err:
                raise AccessDenied(self.pid, msg=str(err))
        return self._procargs

    @wrap_exceptions
    def name(self):
        exe, argv = self._get_procargs()
        if not exe and argv:
            exe = argv[0]
        self._name = base_name(exe)
        return self._name

    @wrap_exceptions
    def cmdline(self):
        return self._get_procargs()[1]

    def as_record(self):
        return precord(self.pid, self.name(), self.cmdline())


class OSXEnumerator(ProcessEnumerator):
    """Enumerate processes through sysctl(3)."""

    Process = Process

    def pids(self):
        """Returns a list of PIDs currently running on the system."""
        try:
            data = kinfo_proc_all()
        except OSError as err:
            debug(err)
            raise EnumerationError(
                "sysctl(kern.proc.all) failed: %s" % err.strerror,
                errno=err.errno,
            )
        # PID 0 is kernel_task
        return [pid for pid in parse_kinfo_pids(data) if pid > 0]


Enumerator = OSXEnumerator
