# Copyright (c) 2009, Giampaolo Rodola'. All rights reserved.
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.


class Error(Exception):
    """Base exception class. All other pidof exceptions inherit
    from this one.
    """

    __module__ = 'pidof'

    def __init__(self, msg=""):
        Exception.__init__(self, msg)
        self.msg = msg

    def __repr__(self):
        ret = "pidof.%s %s" % (self.__class__.__name__, self.msg)
        return ret.strip()

    __str__ = __repr__


class NoSuchProcess(Error):
    """Exception raised when a process with a certain PID doesn't
    or no longer exists.
    """

    __module__ = 'pidof'

    def __init__(self, pid, name=None, msg=None):
        Error.__init__(self, msg)
        self.pid = pid
        self.name = name
        self.msg = msg
        if msg is None:
            if name:
                details = "(pid=%s, name=%s)" % (self.pid, repr(self.name))
            else:
                details = "(pid=%s)" % self.pid
            self.msg = "process no longer exists " + details


class AccessDenied(Error):
    """Exception raised when permission to read a process is denied."""

    __module__ = 'pidof'

    def __init__(self, pid=None, name=None, msg=None):
        Error.__init__(self, msg)
        self.pid = pid
        self.name = name
        self.msg = msg
        if msg is None:
            if (pid is not None) and (name is not None):
                self.msg = "(pid=%s, name=%s)" % (pid, repr(name))
            elif pid is not None:
                self.msg = "(pid=%s)" % self.pid
            else:
                self.msg = ""


class EnumerationError(Error):
    """Raised when the process table as a whole cannot be read
    (e.g. /proc is not mounted or sysctl(3) fails).
    """

    __module__ = 'pidof'

    def __init__(self, msg, errno=None):
        Error.__init__(self, msg)
        self.errno = errno

    def __str__(self):
        return self.msg
