"""
Run lock for the integrator.

Uses flock on a file in the repository's .git directory so two runs can't
work in the same tree at once.
"""

import fcntl
import os
import sys
import time
import signal
import atexit
from dataclasses import dataclass
from pathlib import Path
from contextlib import contextmanager

from integrator.lib.constants import DEFAULT_LOCK_TIMEOUT, EXIT_UNREACHABLE, LOCK_FILENAME
from integrator.lib.errors import IntegratorError


@dataclass
class LockTimeout(IntegratorError):
    """Lock acquisition timed out."""
    lock_file: Path
    timeout: int
    exit_code = EXIT_UNREACHABLE

    def __str__(self):
        holder = _read_holder(self.lock_file)
        by = f" (held by pid {holder})" if holder else ""
        return f"Another run holds {self.lock_file}{by}; gave up after {self.timeout}s"


def _read_holder(lock_file: Path) -> str | None:
    try:
        return lock_file.read_text().strip() or None
    except OSError:
        return None


@contextmanager
def _acquire_lock(lock_file: Path, timeout: int):
    """
    Internal helper to acquire a file lock.

    Args:
        lock_file: Path to the lock file
        timeout: Seconds to wait for lock
    """
    lock_file.parent.mkdir(parents=True, exist_ok=True)

    # Append mode: opening must not truncate the holder's pid
    fd = open(lock_file, 'a+')
    start = time.time()

    while True:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            break
        except BlockingIOError:
            if time.time() - start >= timeout:
                fd.close()
                raise LockTimeout(lock_file=lock_file, timeout=timeout)
            time.sleep(1)

    def cleanup():
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
            fd.close()
        except (OSError, ValueError):
            pass

    atexit.register(cleanup)
    original_sigterm = signal.signal(signal.SIGTERM, lambda *_: sys.exit(1))

    try:
        fd.seek(0)
        fd.truncate()
        fd.write(f"{os.getpid()}\n")
        fd.flush()
        yield
    finally:
        atexit.unregister(cleanup)
        signal.signal(signal.SIGTERM, original_sigterm)
        cleanup()


@contextmanager
def repo_lock(git_dir: Path, timeout: int = DEFAULT_LOCK_TIMEOUT):
    """
    Acquire the repository lock, yield, release on exit.

    Held for a whole run: reconciliation, build and push.
    """
    with _acquire_lock(git_dir / LOCK_FILENAME, timeout):
        yield
