# Copyright (c) 2009, Giampaolo Rodola'. All rights reserved.
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

"""pidof is a cross-platform library and command line tool to find
the PIDs of running processes by name. Supported platforms are:

 - Linux (via /proc)
 - macOS (via sysctl(3))

Example:

    >>> import pidof
    >>> pidof.pids_of("sshd")
    [612, 10288]
    >>> pidof.pids_of("myscript.py", exact=True)  # python myscript.py
    [10301]
"""

import sys

from . import _common
from ._common import LINUX
from ._common import MACOS
from ._common import POSIX
from ._common import ProcessEnumerator
from ._common import pmatch
from ._common import precord
from ._exceptions import AccessDenied
from ._exceptions import EnumerationError
from ._exceptions import Error
from ._exceptions import NoSuchProcess


if LINUX:
    # This is public API and it will be retrieved from _pslinux.py
    # via sys.modules.
    PROCFS_PATH = "/proc"

    from . import _pslinux as _psplatform

elif MACOS:
    from . import _psosx as _psplatform

else:  # pragma: no cover
    msg = "platform %s is not supported" % sys.platform
    raise NotImplementedError(msg)


# fmt: off
__all__ = [
    # exceptions
    "Error", "NoSuchProcess", "AccessDenied", "EnumerationError",

    # constants
    "version_info", "__version__",
    "LINUX", "MACOS", "POSIX",

    # classes
    "ProcessEnumerator", "pmatch", "precord",

    # functions
    "get_enumerator", "pids", "pids_of",
]
# fmt: on


__all__.extend(_psplatform.__extra__all__)

__author__ = "Giampaolo Rodola'"
__version__ = "1.0.0"
version_info = tuple([int(num) for num in __version__.split('.')])


def get_enumerator():
    """Return a ProcessEnumerator for the current platform."""
    return _psplatform.Enumerator()


def pids():
    """Return a list of the PIDs currently visible on the system.
    Raises EnumerationError if the process table can't be read.
    """
    return get_enumerator().pids()


def pids_of(name, exact=False):
    """Return the PIDs of the processes named 'name', in no particular
    order.

    The process name is compared with 'name'. If 'exact' is True the
    base name of every command line argument is compared as well, so
    that a script run through an interpreter ("python myscript.py")
    can be found by its file name ("myscript.py").

    If 'name' contains path separators only its last component is
    used. Processes which vanish or which can't be read while the
    process table is scanned are ignored.

    Raises EnumerationError if the process table can't be read.
    """
    return get_enumerator().find_pids(name, exact=exact)


def _set_debug(value):
    """Enable or disable PIDOF_DEBUG option, which prints debugging
    messages to stderr.
    """
    _common.PIDOF_DEBUG = bool(value)
