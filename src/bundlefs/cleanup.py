"""
Exactly-once removal of temporary destinations.
"""

import os
import shutil
import threading

from bundlefs.log_utils import logger


def remove_path(path: str) -> bool:
    """
    Best-effort removal of a file, symlink or directory tree.

    A missing path counts as removed. Other failures are logged and reported
    through the return value instead of being raised.

    Returns:
        bool: `True` if nothing remains at `path`, `False` if removal failed.
    """
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.remove(path)
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.warning("Error cleaning up %s: %s", path, e)
        return False
    logger.debug("Removed %s", path)
    return True


class CleanupGuard:
    """
    Removal action for one temporary destination that runs at most once.

    Calling the guard removes the path; every later call, from any thread, is
    a no-op. Concurrent first calls wait until the single removal attempt has
    finished. Removal errors are logged, never raised.

    The guard is also a context manager that cleans up on exit:

        with CleanupGuard(path):
            ...
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._done = False

    @property
    def done(self) -> bool:
        """Whether the removal has already been attempted."""
        return self._done

    def __call__(self) -> None:
        with self._lock:
            if self._done:
                return
            try:
                remove_path(self.path)
            finally:
                self._done = True

    def __enter__(self) -> "CleanupGuard":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self()

    def __repr__(self) -> str:
        state = "done" if self._done else "armed"
        return f"CleanupGuard({self.path!r}, {state})"
