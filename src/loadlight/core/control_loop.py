"""
Sampling, smoothing and LED update loop.

State Machine
=============

::

    DISCONNECTED ──> CONNECTING ──(handshake ok)──> CONNECTED
         ↑               │  ↑                           │
         │        (fail) │  │ (wait backoff)            │ cycle: sample → smooth
         │               └──┘                           │        → dispatch → write
         └──────────(any I/O failure)───────────────────┘

    any state ──(stop requested)──> STOPPED

Every connect starts a new session: metrics providers are reopened and the
SmoothedSampler is rebuilt, so smoothing history never crosses an outage.

Stop requests are honored at each suspension point: before a connect
attempt, during the connect itself, during the backoff wait, during the
CPU sampling wait and during the OpenRGB update of each cycle.
"""

import logging
from enum import Enum
from typing import Optional, Protocol

from loadlight.devices import LoadSignals, RuleRegistry, TopologyDispatcher
from loadlight.exceptions import (
    ControllerConnectionError,
    LedCountMismatchError,
    MetricsProviderError,
    TopologyMismatchError,
    wrap_controller_error,
)
from loadlight.lighting import LightingConnection, LightingConnector, OpenRGBConnector
from loadlight.metrics import MetricsSource
from loadlight.models import LoadLightConfig

from .sampler import Metric, SmoothedSampler, buffer_capacity
from .shutdown import ShutdownRequested, ShutdownToken

logger = logging.getLogger(__name__)

UPDATE_THREAD_NAME = "openrgb-update"

# How long a session waits for an abandoned update before closing the connection under it
ABANDONED_UPDATE_WAIT = 0.5


class LoopState(Enum):
    """Connection state of the control loop."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    STOPPED = "stopped"


class BackoffStrategy(Protocol):
    """Delay before the next connection attempt."""

    def delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        ...


class FixedBackoff:
    """Same delay after every failed attempt."""

    def __init__(self, interval: float = 1.0):
        self.interval = interval

    def delay(self, attempt: int) -> float:
        return self.interval


class ControlLoop:
    """
    Drives LED colors from smoothed CPU/GPU load.

    ``run()`` blocks until a stop is requested through the ShutdownToken.
    Connection and metrics failures are logged and lead to a reconnect; they
    never end ``run()``, except that with ``escalate_provider_failures`` a
    failure to open the metrics providers is raised so a service manager
    can restart the process.
    """

    def __init__(
        self,
        connector: LightingConnector,
        metrics: MetricsSource,
        dispatcher: TopologyDispatcher,
        sample_window_seconds: float = 5.0,
        sample_interval_ms: int = 500,
        shutdown: Optional[ShutdownToken] = None,
        backoff: Optional[BackoffStrategy] = None,
        connect_timeout: Optional[float] = None,
        escalate_provider_failures: bool = False,
    ):
        """
        Initialize the control loop.

        Args:
            connector: Opens lighting-controller sessions
            metrics: CPU/GPU providers
            dispatcher: Maps topologies and loads to LED colors
            sample_window_seconds: Smoothing window length
            sample_interval_ms: CPU measurement interval per cycle
            shutdown: Cancellation token (a private one if None, never stopped)
            backoff: Delay between connection attempts (FixedBackoff(1.0) if None)
            connect_timeout: Abandon a single connect attempt after this many
                             seconds (None = no limit)
            escalate_provider_failures: Raise instead of retrying when the
                                        metrics providers cannot be opened
        """
        self._connector = connector
        self._metrics = metrics
        self._dispatcher = dispatcher
        self._capacity = buffer_capacity(sample_window_seconds, sample_interval_ms)
        self._sample_interval = sample_interval_ms / 1000.0
        self._shutdown = shutdown or ShutdownToken()
        self._backoff = backoff or FixedBackoff()
        self._connect_timeout = connect_timeout
        self._escalate_provider_failures = escalate_provider_failures

        self._state = LoopState.DISCONNECTED
        self._reported_mismatches: set[tuple[str, Optional[str]]] = set()

    @classmethod
    def from_config(
        cls,
        config: LoadLightConfig,
        shutdown: Optional[ShutdownToken] = None,
        escalate_provider_failures: bool = False,
    ) -> "ControlLoop":
        """Build a loop wired to OpenRGB, psutil and NVML."""
        return cls(
            connector=OpenRGBConnector.from_config(config),
            metrics=MetricsSource.system(config.gpu_index),
            dispatcher=TopologyDispatcher(RuleRegistry(config.rules_file), config.endpoints),
            sample_window_seconds=config.sample_window_seconds,
            sample_interval_ms=config.sample_interval_ms,
            shutdown=shutdown,
            backoff=FixedBackoff(config.retry_interval),
            connect_timeout=config.connect_timeout,
            escalate_provider_failures=escalate_provider_failures,
        )

    # ================================================================
    # STATE
    # ================================================================

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def shutdown(self) -> ShutdownToken:
        return self._shutdown

    def _set_state(self, state: LoopState) -> None:
        if state is not self._state:
            logger.debug(f"Control loop: {self._state.value} -> {state.value}")
            self._state = state

    # ================================================================
    # MAIN LOOP
    # ================================================================

    def run(self) -> None:
        """
        Connect, sample and update LEDs until a stop is requested.

        Raises:
            MetricsProviderError: Only with escalate_provider_failures, when
                                  the providers cannot be opened
        """
        try:
            while True:
                connection = self._connect()
                sampler = self._open_session(connection)
                if sampler is None:
                    continue
                self._run_session(connection, sampler)
        except ShutdownRequested:
            logger.info("Control loop stopped on request")
        finally:
            self._set_state(LoopState.STOPPED)

    def _connect(self) -> LightingConnection:
        """Retry the handshake until it succeeds or a stop is requested."""
        self._set_state(LoopState.CONNECTING)
        logger.info(f"Connecting to OpenRGB at {self._connector.address}...")

        attempt = 0
        while True:
            self._shutdown.check()
            try:
                connection = self._shutdown.run_until_stopped(
                    self._connector.connect,
                    timeout=self._connect_timeout,
                    name="openrgb-connect",
                    on_late_result=_close_late_connection,
                )
            except (ControllerConnectionError, TimeoutError) as e:
                error = wrap_controller_error(e, self._connector.address, "connect")
                attempt += 1
                logger.warning(f"Failed to connect to OpenRGB: {error.technical_message}. Retrying...")
                self._shutdown.sleep(self._backoff.delay(attempt))
                continue

            logger.info("Connected.")
            self._set_state(LoopState.CONNECTED)
            return connection

    def _open_session(self, connection: LightingConnection) -> Optional[SmoothedSampler]:
        """Open the metrics providers and allocate fresh sample buffers.

        Returns:
            The session's sampler, or None if the providers failed and the
            caller should reconnect
        """
        logger.info("Initializing GPU monitoring...")
        try:
            self._metrics.open()
        except MetricsProviderError as e:
            connection.close()
            self._set_state(LoopState.DISCONNECTED)
            if self._escalate_provider_failures:
                raise
            logger.error(f"Metrics unavailable: {e.technical_message}. Retrying...")
            self._shutdown.sleep(self._backoff.delay(1))
            return None

        return SmoothedSampler(self._capacity)

    def _run_session(self, connection: LightingConnection, sampler: SmoothedSampler) -> None:
        """Run cycles until an I/O failure ends the session."""
        logger.info("Starting control loop...")
        try:
            while True:
                self._shutdown.check()
                self.run_cycle(connection, sampler)
        except (ControllerConnectionError, MetricsProviderError) as e:
            logger.error(f"Failed to sample and set: {e.technical_message}")
        finally:
            self._metrics.close()
            if not self._shutdown.join_abandoned(ABANDONED_UPDATE_WAIT, name=UPDATE_THREAD_NAME):
                logger.debug("OpenRGB update still running, closing the connection under it")
            connection.close()
            if self._state is not LoopState.STOPPED:
                self._set_state(LoopState.DISCONNECTED)

    # ================================================================
    # ONE CYCLE
    # ================================================================

    def run_cycle(self, connection: LightingConnection, sampler: SmoothedSampler) -> LoadSignals:
        """
        Sample both metrics, smooth them and push colors to every controller.

        Returns:
            The smoothed loads used for this cycle

        Raises:
            ShutdownRequested: If a stop arrived during the cycle
            ControllerConnectionError: If OpenRGB failed
            MetricsProviderError: If a metric could not be read
        """
        cpu = self._metrics.cpu.sample_cpu_busy_fraction(self._sample_interval, self._shutdown.sleep)
        gpu = self._metrics.gpu.sample_gpu_busy_fraction()

        sampler.push(Metric.CPU, cpu)
        sampler.push(Metric.GPU, gpu)
        loads = LoadSignals(cpu=sampler.read(Metric.CPU), gpu=sampler.read(Metric.GPU))

        self._shutdown.run_until_stopped(
            self.update_controllers, connection, loads, name=UPDATE_THREAD_NAME
        )

        logger.info(f"CPU: {loads.cpu:.3f} GPU: {loads.gpu:.3f}")
        return loads

    def update_controllers(self, connection: LightingConnection, loads: LoadSignals) -> None:
        """
        Re-read every controller's topology and write its colors.

        A controller whose zones don't fit its rule, or that rejects the
        number of colors, is skipped for this cycle. Stops writing as soon as
        a stop has been requested.
        """
        for controller_id in range(connection.controller_count()):
            topology = connection.get_topology(controller_id)
            try:
                colors = self._dispatcher.assign(topology, loads)
            except TopologyMismatchError as e:
                self._report_mismatch((e.controller_name, e.zone_name), e)
                continue

            if self._shutdown.should_stop:
                return
            try:
                connection.write_leds(controller_id, colors)
            except LedCountMismatchError as e:
                self._report_mismatch((e.controller_name, None), e)

    def _report_mismatch(
        self,
        key: tuple[str, Optional[str]],
        error: TopologyMismatchError | LedCountMismatchError,
    ) -> None:
        """Warn once per controller/zone, then keep quiet."""
        if key in self._reported_mismatches:
            logger.debug(f"Skipping '{error.controller_name}': {error.technical_message}")
            return

        self._reported_mismatches.add(key)
        logger.warning(
            f"Skipping '{error.controller_name}' until fixed: {error.user_message} {error.recovery_hint}"
        )


def _close_late_connection(connection: LightingConnection) -> None:
    """Close a connection whose connect attempt was already given up on."""
    logger.debug("Closing OpenRGB connection from an abandoned connect attempt")
    connection.close()
