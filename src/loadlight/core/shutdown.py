"""Cooperative cancellation shared between the lifecycle host and the control loop."""

import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ShutdownState(Enum):
    """Lifecycle of a ShutdownToken."""

    RUNNING = "running"
    STOP_REQUESTED = "stop-requested"
    STOPPED = "stopped"


class ShutdownRequested(Exception):
    """Raised at a suspension point when a stop won the race.

    This is control flow, not an error: the control loop catches it and
    returns normally.
    """


class ShutdownToken:
    """
    Cancellation token passed into every suspension point of the control loop.

    The host side calls ``request_stop()``; the loop side either polls
    ``should_stop`` at cycle boundaries or blocks in ``sleep()`` /
    ``run_until_stopped()``, both of which wake immediately on a stop.

    Thread-safe. Built on ``threading.Event`` so a stop delivered from a
    signal handler or another thread interrupts a wait on the loop thread.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = ShutdownState.RUNNING
        self._stop_event = threading.Event()
        # Per-call wake events of run_until_stopped(), set on stop
        self._waiters: set[threading.Event] = set()
        # Worker threads run_until_stopped() gave up on
        self._abandoned: list[threading.Thread] = []

    @property
    def state(self) -> ShutdownState:
        with self._lock:
            return self._state

    @property
    def should_stop(self) -> bool:
        """True once a stop has been requested."""
        return self._stop_event.is_set()

    def request_stop(self) -> None:
        """Flip to STOP_REQUESTED and wake every waiter. Idempotent."""
        with self._lock:
            if self._state is ShutdownState.RUNNING:
                self._state = ShutdownState.STOP_REQUESTED
                logger.info("Stop requested")
            self._stop_event.set()
            waiters = list(self._waiters)

        for waiter in waiters:
            waiter.set()

    def mark_stopped(self) -> None:
        """Record that the loop has exited. Called by the loop owner."""
        with self._lock:
            self._state = ShutdownState.STOPPED

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until a stop is requested or ``timeout`` elapses.

        Returns:
            True if a stop was requested
        """
        return self._stop_event.wait(timeout)

    def check(self) -> None:
        """Raise ShutdownRequested if a stop has been requested."""
        if self._stop_event.is_set():
            raise ShutdownRequested()

    def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless a stop arrives first.

        Raises:
            ShutdownRequested: If a stop was requested before or during the sleep
        """
        if self._stop_event.wait(seconds):
            raise ShutdownRequested()

    def run_until_stopped(
        self,
        func: Callable[..., T],
        *args: Any,
        timeout: Optional[float] = None,
        name: str = "loadlight-call",
        on_late_result: Optional[Callable[[T], None]] = None,
    ) -> T:
        """
        Run a blocking call and race it against a stop request.

        The call runs on a daemon thread. If the stop wins or ``timeout``
        elapses, the thread is abandoned (it cannot be interrupted) and keeps
        running until the call returns. ``on_late_result`` then receives
        whatever the abandoned call returned, on the worker thread, so a
        resource it opened can be released.

        Args:
            func: Blocking callable to run
            *args: Arguments for ``func``
            timeout: Give up after this many seconds (None = no limit)
            name: Worker thread name, also used by join_abandoned()
            on_late_result: Receives the result of an abandoned call that
                            eventually succeeds

        Returns:
            Whatever ``func`` returned

        Raises:
            ShutdownRequested: If a stop was requested before ``func`` finished
            TimeoutError: If ``timeout`` elapsed first
            Exception: Whatever ``func`` raised
        """
        self.check()

        call = _WorkerCall(func, args, on_late_result)
        with self._lock:
            self._waiters.add(call.wake)
            if self._stop_event.is_set():
                call.wake.set()

        thread = threading.Thread(target=call.run, name=name, daemon=True)
        try:
            thread.start()
            call.wake.wait(timeout)
        finally:
            with self._lock:
                self._waiters.discard(call.wake)

        if call.abandon():
            with self._lock:
                self._abandoned.append(thread)
            if self._stop_event.is_set():
                logger.debug(f"Abandoning {name}: stop requested")
                raise ShutdownRequested()
            raise TimeoutError(f"{name} did not finish within {timeout}s")

        if call.error is not None:
            raise call.error
        return call.result

    def join_abandoned(self, timeout: float, name: Optional[str] = None) -> bool:
        """
        Wait up to ``timeout`` for calls abandoned by run_until_stopped() to return.

        Args:
            timeout: Total time to wait, in seconds
            name: Only wait for worker threads with this name

        Returns:
            True if none of the matching calls is still running
        """
        deadline = time.monotonic() + timeout
        with self._lock:
            threads = [t for t in self._abandoned if name is None or t.name == name]

        for thread in threads:
            thread.join(max(0.0, deadline - time.monotonic()))

        with self._lock:
            self._abandoned = [t for t in self._abandoned if t.is_alive()]
        return not any(t.is_alive() for t in threads)


class _WorkerCall:
    """One blocking call handed to a worker thread by run_until_stopped()."""

    def __init__(self, func: Callable[..., Any], args: tuple, on_late_result: Optional[Callable[[Any], None]]):
        self._func = func
        self._args = args
        self._on_late_result = on_late_result
        self._lock = threading.Lock()
        self._done = False
        self._abandoned = False
        # Also set by request_stop() to wake the waiting thread
        self.wake = threading.Event()
        self.result: Any = None
        self.error: Optional[BaseException] = None

    def run(self) -> None:
        try:
            result = self._func(*self._args)
        except BaseException as e:  # handed back to the waiting thread
            self.error = e
            result = None

        with self._lock:
            self.result = result
            self._done = True
            late = self._abandoned
        self.wake.set()

        if late and self.error is None and self._on_late_result is not None:
            try:
                self._on_late_result(result)
            except Exception:
                logger.exception("Failed to release the result of an abandoned call")

    def abandon(self) -> bool:
        """Give up on the call unless it already finished.

        Returns:
            True if the call is still running and now abandoned
        """
        with self._lock:
            if not self._done:
                self._abandoned = True
            return self._abandoned
