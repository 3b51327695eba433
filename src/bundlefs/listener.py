"""
Signal-aware cleanup of temporary destinations.

A termination listener removes one path when the process receives SIGINT,
SIGTERM or SIGHUP and then terminates the process with status 128 + the
signal number. Termination is a hard exit that skips any other pending
cleanup, so the listener is for "clean up this one thing, then die now".

Signal handlers are process-wide state. All listeners share one hub that
installs handlers while at least one listener is armed and restores the
previously installed handlers once the last listener is stopped. The handler
itself only queues the signal; each listener's watcher thread does the work.
"""

import enum
import os
import queue
import signal
import threading
from typing import Any, Callable, Dict, List, Optional

from bundlefs.cleanup import remove_path
from bundlefs.constants import (
    FALLBACK_SIGNAL_EXIT_STATUS,
    LISTENER_SIGNAL_NAMES,
    LISTENER_THREAD_NAME,
    SIGNAL_EXIT_BASE,
)
from bundlefs.exceptions import ListenerError
from bundlefs.log_utils import flush_handlers, logger

Terminate = Callable[[int], Any]


class ListenerState(enum.Enum):
    ARMED = "armed"
    DISENGAGED = "disengaged"
    FIRED = "fired"


def listener_signals() -> List[signal.Signals]:
    """Return the termination signals this platform supports."""
    return [
        getattr(signal, name)
        for name in LISTENER_SIGNAL_NAMES
        if hasattr(signal, name)
    ]


def signal_name(sig: Any) -> str:
    """Best effort signal name for logging."""
    try:
        return signal.Signals(sig).name
    except (TypeError, ValueError):
        return str(sig)


def exit_status(sig: Any) -> int:
    """Exit status for a process terminated by `sig`: 128 + its number."""
    try:
        return SIGNAL_EXIT_BASE + int(sig)
    except (TypeError, ValueError):
        return FALLBACK_SIGNAL_EXIT_STATUS


def _on_main_thread() -> bool:
    return threading.current_thread() is threading.main_thread()


class _SignalHub:
    """Process-wide owner of the termination signal handlers."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._listeners: List["CleanupListener"] = []
        self._previous: Dict[int, Any] = {}

    def register(self, listener: "CleanupListener") -> None:
        with self._lock:
            if not self._previous or (_on_main_thread() and not self._installed()):
                self._install()
            self._listeners.append(listener)

    def unregister(self, listener: "CleanupListener") -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
            if not self._listeners:
                self.restore()

    def restore(self) -> None:
        """Put back the handlers that were installed before the hub's own."""
        with self._lock:
            if not self._previous:
                return
            if not _on_main_thread():
                # signal.signal() only works on the main thread; the hub
                # handler keeps delegating to the previous handlers instead.
                logger.debug("Deferring signal handler restore to the main thread")
                return
            for sig, previous in self._previous.items():
                if signal.getsignal(sig) == self._handle:
                    signal.signal(sig, signal.SIG_DFL if previous is None else previous)
            self._previous = {}

    def _install(self) -> None:
        if not _on_main_thread():
            raise ListenerError(
                "Termination listeners must be started from the main thread"
            )
        installed: Dict[int, Any] = {}
        try:
            for sig in listener_signals():
                current = signal.signal(sig, self._handle)
                if current == self._handle:
                    # Left in place by a restore deferred off the main thread.
                    current = self._previous.get(sig, signal.SIG_DFL)
                installed[sig] = current
        except (OSError, ValueError) as e:
            for sig, previous in installed.items():
                signal.signal(sig, signal.SIG_DFL if previous is None else previous)
            raise ListenerError(
                "Could not install termination signal handlers", details=str(e)
            ) from e
        self._previous = installed

    def _installed(self) -> bool:
        return all(signal.getsignal(sig) == self._handle for sig in listener_signals())

    def _handle(self, signum: int, frame: Any) -> None:
        # Runs on the main thread between bytecodes; must not take locks.
        listeners = list(self._listeners)
        if listeners:
            for listener in listeners:
                listener._notify(signum)
            return
        self._delegate(signum, frame)

    def _delegate(self, signum: int, frame: Any) -> None:
        previous = self._previous.get(signum, signal.SIG_DFL)
        if previous == signal.SIG_IGN:
            return
        if callable(previous):
            previous(signum, frame)
            return
        signal.signal(signum, signal.SIG_DFL)
        os.kill(os.getpid(), signum)


_hub = _SignalHub()


class CleanupListener:
    """
    Watcher that removes `path` and terminates the process on a termination signal.

    Created by start_listener(). Calling the listener (or its `stop()` method)
    disengages it; disengaging is idempotent, thread-safe and harmless after
    the listener has fired. The listener owns only the path string, so firing
    does not mark any CleanupGuard for the same path as done.
    """

    def __init__(
        self,
        path: str,
        terminate: Optional[Terminate] = None,
        hub: Optional[_SignalHub] = None,
    ) -> None:
        self.path = os.fspath(path)
        self._terminate = terminate if terminate is not None else os._exit
        self._hub = hub if hub is not None else _hub
        self._lock = threading.Lock()
        self._state = ListenerState.ARMED
        # SimpleQueue.put is reentrant, so the signal handler may call it
        # even while the main thread is inside stop().
        self._queue: "queue.SimpleQueue[Optional[int]]" = queue.SimpleQueue()
        self._thread = threading.Thread(
            target=self._watch, name=LISTENER_THREAD_NAME, daemon=True
        )

    @property
    def state(self) -> ListenerState:
        return self._state

    def _start(self) -> None:
        self._hub.register(self)
        self._thread.start()
        logger.debug("Started cleanup listener for %s", self.path)

    def _notify(self, signum: int) -> None:
        self._queue.put(signum)

    def _watch(self) -> None:
        signum = self._queue.get()
        if signum is None:
            return
        with self._lock:
            if self._state is not ListenerState.ARMED:
                return
            self._state = ListenerState.FIRED
        self._fire(signum)

    def _fire(self, signum: int) -> None:
        logger.error(
            "Received signal %s, cleaning up %s", signal_name(signum), self.path
        )
        remove_path(self.path)
        self._hub.unregister(self)
        flush_handlers()
        self._terminate(exit_status(signum))

    def stop(self) -> None:
        """Stop watching for signals without side effects."""
        with self._lock:
            if self._state is not ListenerState.ARMED:
                return
            self._state = ListenerState.DISENGAGED
        self._queue.put(None)
        self._hub.unregister(self)
        logger.debug("Stopped cleanup listener for %s", self.path)

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the watcher thread to finish."""
        self._thread.join(timeout)

    def __call__(self) -> None:
        self.stop()

    def __enter__(self) -> "CleanupListener":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()


def start_listener(path: str, terminate: Optional[Terminate] = None) -> CleanupListener:
    """
    Remove `path` and exit when the process receives SIGINT, SIGTERM or SIGHUP.

    On a signal the listener logs the signal and path, removes the path
    (recursively, logging but never raising failures), and calls
    `terminate(128 + signum)`. The default `terminate` is os._exit, which
    skips any other pending cleanup.

    Parameters:
        path (str): File or directory to remove on termination.
        terminate (Optional[Callable[[int], Any]]): Replacement for os._exit.

    Returns:
        CleanupListener: The armed listener; call it to disengage.

    Raises:
        ListenerError: If signal handlers cannot be installed, for example
            when called off the main thread before any listener is armed.
    """
    listener = CleanupListener(path, terminate)
    listener._start()
    return listener
