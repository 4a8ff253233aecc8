"""Engine lifecycle for echotool.

Every protocol engine runs its loop in one dedicated worker thread and
is stopped cooperatively through a CancelToken. Subclasses implement
_prepare() (synchronous setup, may refuse to start) and _run() (the
protocol loop). Sockets are released in _cleanup() on the worker.
"""

import logging
import threading
from abc import ABC, abstractmethod
from enum import Enum

from common.connection import EngineError
from common.io import CancelToken

logger = logging.getLogger(__name__)


class EngineState(Enum):
    """Coarse lifecycle state, exposed for presentation and tests."""

    IDLE = "idle"
    RESOLVING = "resolving"
    CONNECTING = "connecting"
    RUNNING = "running"
    LISTENING = "listening"
    STOPPED = "stopped"


class Engine(ABC):
    """Base class for the four echo engines."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._token: CancelToken | None = None
        self._state = EngineState.IDLE

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> bool:
        """Start the engine.

        Returns False if configuration or setup fails; the engine does not
        start and has already reported the reason.

        Raises:
            EngineError: If the engine is already running.
        """
        with self._lock:
            if self.running:
                raise EngineError(f"{self._name} is already running")
            token = CancelToken()
            if not self._prepare(token):
                token.close()
                self._state = EngineState.STOPPED
                return False
            self._token = token
            self._thread = threading.Thread(
                target=self._worker, args=(token,), name=self._name, daemon=True
            )
            self._thread.start()
        return True

    def stop(self, timeout: float | None = 5.0) -> None:
        """Cancel the run and wait for the worker to release its sockets.

        Idempotent. When called from the worker itself (e.g. inside a
        callback) it only signals cancellation.
        """
        token = self._token
        thread = self._thread
        if token is None or thread is None:
            return
        token.cancel()
        if thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning(f"{self._name}: worker did not exit within {timeout}s")

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the run to end. Returns True if it has ended."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def _worker(self, token: CancelToken) -> None:
        try:
            self._run(token)
        except Exception:
            logger.exception(f"{self._name}: unexpected error in worker")
        finally:
            try:
                self._cleanup()
            finally:
                self._state = EngineState.STOPPED
                token.close()
                logger.debug(f"{self._name}: worker exited")

    @abstractmethod
    def _prepare(self, token: CancelToken) -> bool:
        """Synchronous setup before the worker starts."""
        pass

    @abstractmethod
    def _run(self, token: CancelToken) -> None:
        """Protocol loop, runs on the worker thread."""
        pass

    def _cleanup(self) -> None:
        """Release sockets. Runs on the worker thread after _run()."""
        pass
