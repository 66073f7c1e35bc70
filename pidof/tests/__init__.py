# Copyright (c) 2009, Giampaolo Rodola'. All rights reserved.
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

"""Test utilities."""

import atexit
import contextlib
import importlib.util
import errno
import os
import shutil
import signal
import subprocess
import sys
import tempfile
import textwrap
import time
import unittest
import warnings

import pidof
from pidof import LINUX
from pidof import MACOS
from pidof import POSIX
from pidof._common import ProcessEnumerator
from pidof._common import precord
from pidof._exceptions import AccessDenied
from pidof._exceptions import EnumerationError
from pidof._exceptions import NoSuchProcess


# fmt: off
__all__ = [
    # constants
    'DEVNULL', 'GLOBAL_TIMEOUT', 'PYTHON_EXE', 'ROOT_DIR', 'SCRIPTS_DIR',
    'TESTFN_PREFIX', 'LINUX', 'MACOS', 'POSIX',
    # subprocesses
    'pyrun', 'terminate', 'reap_children', 'spawn_testproc', 'sh',
    'run_cli',
    # test utils
    'PidofTestCase', 'FakeEnumerator', 'FakeProcfs',
    'gone', 'denied', 'unreadable_procfs',
    # fs utils
    'safe_rmpath', 'get_testfn', 'import_module_by_path',
    # sync primitives
    'wait_for_pid', 'wait_for_file',
]
# fmt: on


# ===================================================================
# --- constants
# ===================================================================

# the timeout used in functions which have to wait
GLOBAL_TIMEOUT = 5
if os.environ.get('CI'):
    GLOBAL_TIMEOUT *= 3

# Disambiguate TESTFN for parallel testing.
TESTFN_PREFIX = '@pidof-%s-' % os.getpid()

ROOT_DIR = os.path.realpath(
    os.path.join(os.path.dirname(__file__), '..', '..')
)
SCRIPTS_DIR = os.path.join(ROOT_DIR, 'scripts')
HERE = os.path.realpath(os.path.dirname(__file__))

PYTHON_EXE = os.path.realpath(sys.executable)
DEVNULL = subprocess.DEVNULL

_subprocesses_started = set()
_testfiles_created = set()


@atexit.register
def cleanup_test_files():
    while _testfiles_created:
        safe_rmpath(_testfiles_created.pop())


@atexit.register
def cleanup_test_procs():
    reap_children()


# ===================================================================
# --- fs utils
# ===================================================================


def safe_rmpath(path):
    """Convenience function for removing temporary test files or dirs."""
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path, ignore_errors=True)
    else:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass


def get_testfn(suffix="", dir=None):
    """Return an absolute pathname of a file or dir that did not
    exist at the time this call is made. Also schedule it for safe
    deletion at interpreter exit.
    """
    while True:
        name = tempfile.mktemp(prefix=TESTFN_PREFIX, suffix=suffix, dir=dir)
        if not os.path.exists(name):  # also include dirs
            path = os.path.realpath(name)  # needed for OSX
            _testfiles_created.add(path)
            return path


def import_module_by_path(path):
    name = os.path.splitext(os.path.basename(path))[0]
    spec = importlib.util.spec_from_file_location(name, path)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


# ===================================================================
# --- sync primitives
# ===================================================================


class retry:
    """A retry decorator."""

    def __init__(
        self,
        exception=Exception,
        timeout=None,
        retries=None,
        interval=0.001,
    ):
        if timeout and retries:
            raise ValueError("timeout and retries args are mutually exclusive")
        self.exception = exception
        self.timeout = timeout
        self.retries = retries
        self.interval = interval

    def __iter__(self):
        if self.timeout:
            stop_at = time.time() + self.timeout
            while time.time() < stop_at:
                yield
        elif self.retries:
            for _ in range(self.retries):
                yield
        else:
            while True:
                yield

    def __call__(self, fun):
        def wrapper(*args, **kwargs):
            exc = None
            for _ in self:
                try:
                    return fun(*args, **kwargs)
                except self.exception as _:
                    exc = _
                    time.sleep(self.interval)
                    self.interval = min(self.interval * 2, 0.04)
                    continue
            raise exc

        wrapper.decorator = self
        return wrapper


@retry(exception=AssertionError, timeout=GLOBAL_TIMEOUT, interval=0.001)
def wait_for_pid(pid):
    """Wait for pid to show up in the process list then return."""
    assert pid in pidof.pids(), pid


@retry(
    exception=(FileNotFoundError, AssertionError),
    timeout=GLOBAL_TIMEOUT,
    interval=0.001,
)
def wait_for_file(fname, delete=True, empty=False):
    """Wait for a file to be written on disk with some content."""
    with open(fname, "rb") as f:
        data = f.read()
    if not empty:
        assert data
    if delete:
        safe_rmpath(fname)
    return data


# ===================================================================
# --- subprocesses
# ===================================================================


def spawn_testproc(cmd=None, **kwds):
    """Create a python subprocess which does nothing for 60 secs and
    return it as a subprocess.Popen instance.
    If "cmd" is specified that is used instead of python.
    By default stdin and stdout are redirected to /dev/null.
    The process is registered for cleanup on reap_children().
    """
    kwds.setdefault("stdin", DEVNULL)
    kwds.setdefault("stdout", DEVNULL)
    kwds.setdefault("cwd", os.getcwd())
    kwds.setdefault("env", os.environ)
    if cmd is None:
        testfn = get_testfn()
        try:
            safe_rmpath(testfn)
            pyline = (
                "import time;"
                + "open(r'%s', 'w').close();" % testfn
                + "time.sleep(60);"
            )
            cmd = [PYTHON_EXE, "-c", pyline]
            sproc = subprocess.Popen(cmd, **kwds)
            _subprocesses_started.add(sproc)
            wait_for_file(testfn, delete=True, empty=True)
        finally:
            safe_rmpath(testfn)
    else:
        sproc = subprocess.Popen(cmd, **kwds)
        _subprocesses_started.add(sproc)
        wait_for_pid(sproc.pid)
    return sproc


def pyrun(src, name=None, **kwds):
    """Run python 'src' code string in a separate interpreter. The
    source is written to a file first, so that the process command
    line is "python <file>". 'name' is the base name of that file.
    Returns a (subprocess.Popen, srcfile) tuple.
    """
    if name is None:
        srcfile = get_testfn(suffix=".py")
    else:
        tmpdir = get_testfn()
        os.mkdir(tmpdir)
        srcfile = os.path.join(tmpdir, name)
    try:
        with open(srcfile, "w") as f:
            f.write(textwrap.dedent(src))
        subp = spawn_testproc([PYTHON_EXE, srcfile], **kwds)
        return (subp, srcfile)
    except Exception:
        safe_rmpath(srcfile)
        raise


def sh(cmd, **kwds):
    """Run cmd in a subprocess and return its output.
    raises RuntimeError on error.
    """
    kwds.setdefault("shell", isinstance(cmd, str))
    kwds.setdefault("stdout", subprocess.PIPE)
    kwds.setdefault("stderr", subprocess.PIPE)
    kwds.setdefault("universal_newlines", True)
    p = subprocess.Popen(cmd, **kwds)
    _subprocesses_started.add(p)
    stdout, stderr = p.communicate(timeout=GLOBAL_TIMEOUT)
    if p.returncode != 0:
        raise RuntimeError(stdout + stderr)
    if stderr:
        warnings.warn(stderr, UserWarning, stacklevel=2)
    if stdout.endswith('\n'):
        stdout = stdout[:-1]
    return stdout


def run_cli(*args, **kwds):
    """Run "python -m pidof <args>" from the source tree and return a
    (returncode, stdout, stderr) tuple.
    """
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(
        [ROOT_DIR] + [x for x in [env.get("PYTHONPATH")] if x]
    )
    kwds.setdefault("env", env)
    kwds.setdefault("cwd", ROOT_DIR)
    p = subprocess.Popen(
        [PYTHON_EXE, "-m", "pidof"] + list(args),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        universal_newlines=True,
        **kwds,
    )
    stdout, stderr = p.communicate(timeout=GLOBAL_TIMEOUT)
    return (p.returncode, stdout, stderr)


def terminate(proc, sig=signal.SIGTERM, wait_timeout=GLOBAL_TIMEOUT):
    """Terminate a subprocess.Popen instance and wait() for it,
    closing its stdin / stdout / stderr fds.
    """
    try:
        if proc.poll() is None:
            proc.send_signal(sig)
        proc.wait(timeout=wait_timeout)
    except ProcessLookupError:
        pass
    finally:
        for f in (proc.stdin, proc.stdout, proc.stderr):
            if f is not None:
                f.close()
        _subprocesses_started.discard(proc)


def reap_children():
    """Terminate and wait() any subprocess started by this test suite."""
    while _subprocesses_started:
        terminate(_subprocesses_started.pop())


# ===================================================================
# --- fakes
# ===================================================================


class FakeProcfs:
    """A temporary directory laid out like /proc. pidof.PROCFS_PATH
    points to it until restore() is called.
    """

    def __init__(self):
        self.path = tempfile.mkdtemp(prefix=TESTFN_PREFIX)
        self._orig_path = getattr(pidof, "PROCFS_PATH", None)
        pidof.PROCFS_PATH = self.path

    def add(self, pid, comm, cmdline=None):
        """Add a process; 'cmdline' is a list of arguments, or None
        for a process with no cmdline file.
        """
        piddir = os.path.join(self.path, str(pid))
        os.mkdir(piddir)
        with open(os.path.join(piddir, "comm"), "wb") as f:
            f.write(os.fsencode(comm) + b"\n")
        if cmdline is not None:
            with open(os.path.join(piddir, "cmdline"), "wb") as f:
                f.write(b"".join(os.fsencode(x) + b"\x00" for x in cmdline))
        return piddir

    def remove(self, pid, fname=None):
        """Remove a process dir, or only one of its files."""
        piddir = os.path.join(self.path, str(pid))
        safe_rmpath(os.path.join(piddir, fname) if fname else piddir)

    def restore(self):
        if self._orig_path is not None:
            pidof.PROCFS_PATH = self._orig_path
        shutil.rmtree(self.path, ignore_errors=True)


class _FakeProcess:
    """A Process whose name and cmdline come from a dict."""

    def __init__(self, pid, table, errors):
        self.pid = pid
        self._table = table
        self._errors = errors

    def _get(self, idx):
        if self.pid in self._errors:
            raise self._errors[self.pid]
        return self._table[self.pid][idx]

    def name(self):
        return self._get(0)

    def cmdline(self):
        return list(self._get(1))

    def as_record(self):
        return precord(self.pid, self.name(), self.cmdline())


class FakeEnumerator(ProcessEnumerator):
    """An in-memory process table:

    >>> FakeEnumerator({100: ("foo", ["foo"]), 200: ("bar", [])})

    'errors' maps a PID to the exception its reads raise; 'error' is
    raised by pids() when set. The matching policy is the one of the
    real enumerators.
    """

    def __init__(
        self, table, errors=None, error=None, skip_kernel_threads=False
    ):
        self.table = dict(table)
        self.errors = dict(errors or {})
        self.error = error
        self.skip_kernel_threads = skip_kernel_threads
        self.calls = 0

    def Process(self, pid):
        return _FakeProcess(pid, self.table, self.errors)

    def pids(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        extra = [x for x in self.errors if x not in self.table]
        return list(self.table) + extra


def gone(pid):
    return NoSuchProcess(pid)


def denied(pid):
    return AccessDenied(pid)


def unreadable_procfs():
    return EnumerationError(
        "can't list /proc: No such file or directory", errno=errno.ENOENT
    )


# ===================================================================
# --- testing
# ===================================================================


class PidofTestCase(unittest.TestCase):
    """Test class providing auto-cleanup wrappers on top of process
    test utilities.
    """

    def get_testfn(self, suffix="", dir=None):
        fname = get_testfn(suffix=suffix, dir=dir)
        self.addCleanup(safe_rmpath, fname)
        return fname

    def spawn_testproc(self, *args, **kwds):
        sproc = spawn_testproc(*args, **kwds)
        self.addCleanup(terminate, sproc)
        return sproc

    def pyrun(self, *args, **kwds):
        sproc, srcfile = pyrun(*args, **kwds)
        self.addCleanup(safe_rmpath, srcfile)
        self.addCleanup(terminate, sproc)  # executed first
        return sproc

    def fake_procfs(self):
        procfs = FakeProcfs()
        self.addCleanup(procfs.restore)
        return procfs

    @contextlib.contextmanager
    def debug_enabled(self):
        pidof._set_debug(True)
        try:
            yield
        finally:
            pidof._set_debug(False)
