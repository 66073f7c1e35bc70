# Copyright (c) 2009, Giampaolo Rodola'. All rights reserved.
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

"""Common objects shared by all _ps* modules."""

import functools
import os
import sys
from collections import namedtuple

from ._exceptions import AccessDenied
from ._exceptions import NoSuchProcess


__all__ = [
    # OS constants
    'LINUX', 'MACOS', 'POSIX',
    # named tuples
    'pmatch', 'precord',
    # classes
    'ProcessEnumerator',
    # utility functions
    'base_name', 'debug', 'is_kernel_thread', 'args_match',
]


# ===================================================================
# --- OS constants
# ===================================================================


POSIX = os.name == "posix"
LINUX = sys.platform.startswith("linux")
MACOS = sys.platform.startswith("darwin")

ENCODING = sys.getfilesystemencoding()
ENCODING_ERRS = "surrogateescape"

PIDOF_DEBUG = bool(os.getenv('PIDOF_DEBUG'))


# ===================================================================
# --- named tuples
# ===================================================================


# ProcessEnumerator.find_pids() query
pmatch = namedtuple('pmatch', ['target', 'exact'])
# Process.as_record()
precord = namedtuple('precord', ['pid', 'name', 'cmdline'])


# ===================================================================
# --- utils
# ===================================================================


def debug(msg):
    """If PIDOF_DEBUG env var is set, print a debug message to stderr."""
    if PIDOF_DEBUG:
        import inspect

        fname, lineno, _, _, _ = inspect.getframeinfo(
            inspect.currentframe().f_back
        )
        if isinstance(msg, Exception):
            if isinstance(msg, OSError):
                # ...includes the filename
                msg = "ignoring %s" % msg
            else:
                msg = "ignoring %r" % msg
        print(  # noqa: T201
            "pidof-debug [%s:%s]> %s" % (fname, lineno, msg), file=sys.stderr
        )


def memoize(fun):
    """A simple memoize decorator for functions supporting (hashable)
    positional arguments.
    It also provides a cache_clear() function for clearing the cache:

    >>> @memoize
    ... def foo()
    ...     return 1
    ...
    >>> foo()
    1
    >>> foo.cache_clear()
    >>>
    """

    @functools.wraps(fun)
    def wrapper(*args):
        try:
            return cache[args]
        except KeyError:
            ret = cache[args] = fun(*args)
            return ret

    def cache_clear():
        """Clear cache."""
        cache.clear()

    cache = {}
    wrapper.cache_clear = cache_clear
    return wrapper


def bcat(fname):
    """Read entire file content and return it as bytes."""
    with open(fname, "rb") as f:
        return f.read()


def decode(s):
    """Decode bytes read from the kernel using the fs encoding,
    preserving undecodable bytes.
    """
    return s.decode(encoding=ENCODING, errors=ENCODING_ERRS)


def base_name(path):
    """Return the last component of 'path'. Trailing separators are
    ignored, so "/usr/bin/" -> "bin". A path made only of separators
    returns the separator itself.
    """
    stripped = path.rstrip(os.sep)
    if not stripped:
        return path[:1]
    return os.path.basename(stripped)


def is_kernel_thread(name):
    """Kernel threads are reported as "[name]"."""
    return len(name) >= 2 and name.startswith("[") and name.endswith("]")


def args_match(cmdline, target):
    """Return True if the base name of any non-empty argument in
    'cmdline' equals 'target' (e.g. "python myscript.py" matches
    "myscript.py").
    """
    return any(base_name(arg) == target for arg in cmdline if arg)


# ===================================================================
# --- enumerator
# ===================================================================


class ProcessEnumerator:
    """Base class for the platform process enumerators.

    Subclasses provide pids() (raising EnumerationError if the process
    table cannot be read at all) and a Process class exposing pid,
    name() and cmdline(). The matching policy lives here and is shared
    by every platform:

    * the process name is compared first, regardless of 'exact'
    * with 'exact' set the command line arguments are scanned too, so
      that interpreted scripts can be found by their file name

    Per-process failures (process gone, permission denied) only
    exclude that process from the results.
    """

    Process = None
    # whether "[name]" entries denote kernel threads on this platform
    skip_kernel_threads = False

    def pids(self):
        raise NotImplementedError("must be implemented in subclass")

    def process_iter(self):
        """Yield a Process instance for every visible PID."""
        for pid in self.pids():
            yield self.Process(pid)

    def match(self, proc, query):
        name = proc.name()
        if self.skip_kernel_threads and is_kernel_thread(name):
            return False
        if name == query.target:
            return True
        if query.exact:
            return args_match(proc.cmdline(), query.target)
        return False

    def find_pids(self, target, exact=False):
        """Return the list of PIDs whose process matches 'target'."""
        query = pmatch(base_name(target), bool(exact))
        ret = []
        for proc in self.process_iter():
            try:
                if self.match(proc, query):
                    ret.append(proc.pid)
            except (NoSuchProcess, AccessDenied, OSError) as err:
                # confined to this process; go on with the others
                debug(err)
        return ret
