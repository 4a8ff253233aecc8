"""Client run policy shared by the TCP and UDP echo clients.

EchoClient owns everything that does not depend on the transport:
resolving the target once, the repeat-count loop, pacing between
rounds, statistics, and the socket-error / finished notifications.
Subclasses supply _open(), _round() and _close().
"""

import logging
from abc import abstractmethod

from common.config import ClientConfig
from common.connection import Endpoint, ResolutionError
from common.engine import Engine, EngineState
from common.errors import classify
from common.events import ClientListener
from common.io import CancelToken, Cancelled
from common.protocol import LOG_PROGRESS_INTERVAL, PACING_DELAY_S, TRACE
from common.resolver import resolve_endpoint
from session.result import EchoRound, RunStatistics

logger = logging.getLogger(__name__)


class EchoClient(Engine):
    """Base class for echo clients."""

    def __init__(self, config: ClientConfig, listener: ClientListener | None = None) -> None:
        super().__init__(f"{config.transport.value}-echo-client:{config.host}:{config.remote_port}")
        self.config = config
        self.listener = listener or ClientListener()
        self.stats = RunStatistics()
        self.endpoint: Endpoint | None = None

    def _prepare(self, token: CancelToken) -> bool:
        if not self.config.is_valid():
            return False
        self.stats = RunStatistics()
        self.endpoint = None
        self._state = EngineState.RESOLVING
        return True

    def _run(self, token: CancelToken) -> None:
        aborted = True
        try:
            aborted = not self._execute(token)
        finally:
            logger.info(
                f"Client finished ({self.stats.rounds} received, {self.stats.corrupted} corrupted"
                f"{', aborted' if aborted else ''})"
            )
            self.listener.on_finished(aborted)

    def _execute(self, token: CancelToken) -> bool:
        """Resolve and run all rounds. Returns True if every round completed."""
        cfg = self.config
        count_msg = "until stopped" if cfg.infinite else f"{cfg.repeat_count} rounds"

        try:
            endpoint = resolve_endpoint(cfg.host, cfg.remote_port)
        except ResolutionError as e:
            logger.error(f"Client: {e}")
            self.listener.on_resolution_failed(e.fault)
            return False
        self.endpoint = endpoint
        logger.info(f"Client: resolved {cfg.host} to {endpoint}")
        self.listener.on_resolved(endpoint)

        try:
            self._open(endpoint, token)
            self._state = EngineState.RUNNING
            logger.info(f"Client: echoing {len(cfg.echo_pattern)} bytes to {endpoint}, {count_msg}")

            completed = 0
            while cfg.infinite or completed < cfg.repeat_count:
                echo = self._round(endpoint, token)
                completed += 1
                self._record(echo, completed)
                if cfg.infinite or completed < cfg.repeat_count:
                    token.sleep(PACING_DELAY_S)
        except Cancelled:
            logger.info(f"Client: stopped after {self.stats.rounds} rounds")
            return False
        except OSError as e:
            fault = classify(e)
            logger.error(f"Client: {fault.kind.value} after {self.stats.rounds} rounds ({fault.message})")
            self.listener.on_socket_error(fault)
            return False
        finally:
            self._close()

        return not cfg.infinite

    def _record(self, echo: EchoRound, index: int) -> None:
        self.stats.record(echo)
        if echo.intact:
            logger.log(TRACE, f"Client: round {index} from {echo.peer} (RTT={echo.rtt_ms:.2f}ms)")
        else:
            logger.warning(
                f"Client: corrupted echo on round {index} "
                f"({echo.bytes_received}/{echo.bytes_sent} bytes)"
            )
        if index % LOG_PROGRESS_INTERVAL == 0:
            logger.debug(f"Client: progress {index} rounds (RTT={echo.rtt_ms:.2f}ms)")
        self.listener.on_echo_response(echo)

    def _cleanup(self) -> None:
        self._close()

    @abstractmethod
    def _open(self, endpoint: Endpoint, token: CancelToken) -> None:
        """Prepare the transport before the first round."""
        pass

    @abstractmethod
    def _round(self, endpoint: Endpoint, token: CancelToken) -> EchoRound:
        """Perform one send+receive round."""
        pass

    @abstractmethod
    def _close(self) -> None:
        """Release sockets. Must be idempotent."""
        pass
