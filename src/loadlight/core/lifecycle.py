"""
Service lifecycle: run the control loop on a worker thread and stop it on request.

The coordinator is what a service manager talks to. It owns the
ShutdownToken, starts the loop, turns host stop requests (SIGTERM, SIGINT,
SIGBREAK) into a cooperative stop, and maps the way the loop ended to a
process exit code:

- EXIT_OK: the loop returned after a stop request
- EXIT_RESTART: the loop died with an error; the manager should restart us
- EXIT_UNRESPONSIVE: the loop ignored a stop for longer than the grace period
"""

import logging
import signal
import threading
import time
from typing import Callable, Optional, Protocol

from .shutdown import ShutdownState, ShutdownToken

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_RESTART = 3
EXIT_UNRESPONSIVE = 4

STOP_SIGNALS = ("SIGTERM", "SIGINT", "SIGBREAK")


class RunnableLoop(Protocol):
    def run(self) -> None: ...


class LifecycleCoordinator:
    """
    Owns the control loop thread for the lifetime of a service.

    Usage:
        coordinator = LifecycleCoordinator(
            lambda token: ControlLoop.from_config(config, shutdown=token)
        )
        coordinator.install_signal_handlers()
        sys.exit(coordinator.run())
    """

    def __init__(
        self,
        loop_factory: Callable[[ShutdownToken], RunnableLoop],
        grace_period: float = 1.0,
    ):
        """
        Initialize the coordinator.

        Args:
            loop_factory: Builds the loop bound to the coordinator's token.
                          Called on the worker thread.
            grace_period: How long request_stop() waits for the loop to return
        """
        self._loop_factory = loop_factory
        self._grace_period = grace_period
        self._token = ShutdownToken()
        self._thread: Optional[threading.Thread] = None
        self._exit_code: Optional[int] = None
        self._error: Optional[BaseException] = None
        self._stop_deadline: Optional[float] = None

    @property
    def token(self) -> ShutdownToken:
        return self._token

    @property
    def state(self) -> ShutdownState:
        return self._token.state

    @property
    def error(self) -> Optional[BaseException]:
        """Exception that ended the loop, if any."""
        return self._error

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the loop on a worker thread."""
        if self._thread is not None:
            logger.warning("Control loop already started")
            return

        self._thread = threading.Thread(
            target=self._run_loop, name="loadlight-control-loop", daemon=True
        )
        self._thread.start()
        logger.info("Service started")

    def _run_loop(self) -> None:
        try:
            loop = self._loop_factory(self._token)
            loop.run()
        except Exception as e:
            self._error = e
            self._exit_code = EXIT_RESTART
            logger.exception(f"Exiting from loop with error: {e}")
        else:
            self._exit_code = EXIT_OK
            logger.info("Stopping without errors.")
        finally:
            self._token.mark_stopped()

    def request_stop(self) -> bool:
        """
        Ask the loop to stop and give it the grace period to do so.

        Safe to call more than once, and from a signal handler.

        Returns:
            True if the loop has stopped (or never started)
        """
        if self._stop_deadline is None:
            self._stop_deadline = time.monotonic() + self._grace_period
        self._token.request_stop()

        if self._thread is None:
            return True

        logger.info("Giving time to shutdown gracefully...")
        self._thread.join(max(0.0, self._stop_deadline - time.monotonic()))
        stopped = not self._thread.is_alive()
        if not stopped:
            logger.warning(f"Control loop still running after {self._grace_period}s grace period")
        return stopped

    def wait(self, poll_interval: float = 0.5) -> int:
        """
        Block until the loop ends and return the process exit code.

        Polls so that signal handlers keep running on the main thread.
        """
        if self._thread is None:
            return EXIT_OK

        while self._thread.is_alive():
            self._thread.join(poll_interval)
            if self._stop_deadline is not None and time.monotonic() > self._stop_deadline:
                if self._thread.is_alive():
                    logger.error("Control loop did not stop within the grace period")
                    return EXIT_UNRESPONSIVE

        return self._exit_code if self._exit_code is not None else EXIT_RESTART

    def run(self) -> int:
        """Start the loop and wait for it. Returns the exit code."""
        self.start()
        return self.wait()

    def install_signal_handlers(self) -> list[str]:
        """
        Route termination signals to request_stop().

        Must be called from the main thread.

        Returns:
            Names of the signals that were installed (SIGBREAK only exists on Windows)
        """
        def handle(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, stopping")
            self.request_stop()

        installed = []
        for name in STOP_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            signal.signal(signum, handle)
            installed.append(name)

        logger.debug(f"Installed stop handlers for {', '.join(installed)}")
        return installed
