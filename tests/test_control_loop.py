"""Tests for the control loop state machine using fake hardware."""

import logging
import threading
import time

import pytest

from conftest import (
    FAKE_ADDRESS,
    FakeConnection,
    FakeConnector,
    FakeCpuProvider,
    FakeGpuProvider,
    RecordingBackoff,
    stop_after,
)
from loadlight.colors import block_colors
from loadlight.core import (
    ControlLoop,
    FixedBackoff,
    LoopState,
    ShutdownToken,
    SmoothedSampler,
)
from loadlight.devices import LoadSignals
from loadlight.exceptions import ControllerConnectionError, LedCountMismatchError, MetricsProviderError
from loadlight.models import Color, ControllerTopology, LoadLightConfig, Zone

WHITE = Color.white()


class BlockingConnector:
    """Connector whose connect() hangs until released."""

    address = FAKE_ADDRESS

    def __init__(self, release: threading.Event, on_attempt=None):
        self.release = release
        self.on_attempt = on_attempt
        self.attempts = 0

    def connect(self):
        self.attempts += 1
        if self.on_attempt is not None:
            self.on_attempt(self.attempts)
        self.release.wait()
        raise ControllerConnectionError(FAKE_ADDRESS, "released")


class SlowConnector:
    """Connector whose handshake succeeds only after ``delay`` seconds."""

    address = FAKE_ADDRESS

    def __init__(self, delay: float, topologies, on_attempt=None):
        self.delay = delay
        self.topologies = topologies
        self.on_attempt = on_attempt
        self.attempts = 0
        self.made: list[FakeConnection] = []

    def connect(self):
        self.attempts += 1
        if self.on_attempt is not None:
            self.on_attempt(self.attempts)
        time.sleep(self.delay)
        connection = FakeConnection(self.topologies)
        self.made.append(connection)
        return connection


class SlowWriteStopsLoop(FakeConnection):
    """Requests a stop mid-write and records whether close() ran before the write ended."""

    def __init__(self, topologies, token):
        super().__init__(topologies)
        self.token = token
        self.closed_during_write = False

    def write_leds(self, controller_id, colors):
        self.token.request_stop()
        time.sleep(0.1)
        self.closed_during_write = self.closed > 0
        super().write_leds(controller_id, colors)


class RejectsColors(FakeConnection):
    """Refuses writes to one controller as if its LED count had changed."""

    def __init__(self, topologies, rejected_id: int):
        super().__init__(topologies)
        self.rejected_id = rejected_id

    def write_leds(self, controller_id, colors):
        if controller_id == self.rejected_id:
            name = self.topologies[controller_id].name
            raise LedCountMismatchError(name, len(colors), "list index out of range")
        super().write_leds(controller_id, colors)


class StopOnFirstWrite(FakeConnection):
    """Requests a stop right after the first controller is written."""

    def __init__(self, topologies, token):
        super().__init__(topologies)
        self.token = token

    def write_leds(self, controller_id, colors):
        super().write_leds(controller_id, colors)
        self.token.request_stop()


@pytest.fixture
def token():
    return ShutdownToken()


@pytest.fixture
def backoff():
    return RecordingBackoff()


@pytest.fixture
def make_loop(dispatcher, make_metrics, token, backoff):
    """Build a ControlLoop over fakes with a 1 ms sampling interval."""
    def factory(connector, cpu, gpu=None, **kwargs):
        return ControlLoop(
            connector,
            make_metrics(cpu, gpu),
            dispatcher,
            sample_interval_ms=1,
            shutdown=token,
            backoff=backoff,
            **kwargs,
        )
    return factory


@pytest.mark.unit
class TestCycles:
    """Normal operation."""

    def test_writes_every_cycle_until_stopped(self, make_loop, token, gpu_controller, endpoints):
        """Each cycle writes; the cycle interrupted by the stop writes nothing."""
        connection = FakeConnection([gpu_controller])
        cpu = FakeCpuProvider([0.1], on_sample=stop_after(token, 3))
        gpu = FakeGpuProvider(0.5)
        loop = make_loop(FakeConnector([connection]), cpu, gpu)

        loop.run()

        assert len(connection.writes) == 3
        assert connection.writes[0] == (0, block_colors(0.5, endpoints.start, endpoints.end, 4))
        assert loop.state is LoopState.STOPPED
        assert connection.closed == 1
        assert gpu.closed == 1

    def test_cpu_waits_for_the_sampling_interval(self, make_loop, token, gpu_controller):
        cpu = FakeCpuProvider([0.1], on_sample=stop_after(token, 1))
        loop = make_loop(FakeConnector([FakeConnection([gpu_controller])]), cpu)

        loop.run()

        assert cpu.windows[0] == pytest.approx(0.001)

    def test_run_cycle_returns_smoothed_loads(self, make_loop, gpu_controller, caplog):
        connection = FakeConnection([gpu_controller])
        loop = make_loop(FakeConnector([connection]), FakeCpuProvider([0.2, 0.6]), FakeGpuProvider(0.25))
        sampler = SmoothedSampler(8)

        with caplog.at_level(logging.INFO, logger="loadlight.core.control_loop"):
            loop.run_cycle(connection, sampler)
            loads = loop.run_cycle(connection, sampler)

        assert loads == LoadSignals(cpu=pytest.approx(0.4), gpu=0.25)
        assert "CPU: 0.400 GPU: 0.250" in caplog.text

    def test_mismatched_controller_is_skipped(self, make_loop, token, gpu_controller, caplog):
        """A zone without a rule skips that controller only, and warns once."""
        board = ControllerTopology(
            controller_id=0,
            name="motherboard controller",
            zones=(Zone(name="bottom strip", led_count=2), Zone(name="rear IO", led_count=1)),
        )
        connection = FakeConnection([board, gpu_controller])
        cpu = FakeCpuProvider([0.5], on_sample=stop_after(token, 2))
        loop = make_loop(FakeConnector([connection]), cpu)

        with caplog.at_level(logging.WARNING, logger="loadlight.core.control_loop"):
            loop.run()

        assert [controller_id for controller_id, _ in connection.writes] == [1, 1]
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING and "rear IO" in r.getMessage()]
        assert len(warnings) == 1

    def test_stop_during_update_prevents_further_writes(self, make_loop, token, gpu_controller, unknown_controller):
        connection = StopOnFirstWrite([gpu_controller, unknown_controller], token)
        loop = make_loop(FakeConnector([connection]), FakeCpuProvider([0.5]))

        loop.run()

        assert [controller_id for controller_id, _ in connection.writes] == [0]
        assert loop.state is LoopState.STOPPED

    def test_rejected_write_skips_controller_without_reconnecting(
        self, make_loop, token, gpu_controller, unknown_controller, caplog
    ):
        connection = RejectsColors([gpu_controller, unknown_controller], rejected_id=0)
        connector = FakeConnector([connection])
        gpu = FakeGpuProvider()
        loop = make_loop(connector, FakeCpuProvider([0.5], on_sample=stop_after(token, 3)), gpu)

        with caplog.at_level(logging.WARNING, logger="loadlight.core.control_loop"):
            loop.run()

        assert connector.attempts == 1
        assert gpu.opened == 1
        assert [controller_id for controller_id, _ in connection.writes] == [1, 1, 1]
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "discrete-GPU controller" in warnings[0].getMessage()

    def test_stop_during_write_waits_before_closing(self, make_loop, token, gpu_controller):
        connection = SlowWriteStopsLoop([gpu_controller], token)
        loop = make_loop(FakeConnector([connection]), FakeCpuProvider([0.5]))

        loop.run()

        assert connection.closed == 1
        assert connection.closed_during_write is False
        assert loop.state is LoopState.STOPPED


@pytest.mark.unit
class TestReconnect:
    """Failure handling and session restarts."""

    def test_retries_connect_with_backoff(self, make_loop, token, backoff, gpu_controller):
        connection = FakeConnection([gpu_controller])
        refused = ControllerConnectionError(FAKE_ADDRESS, "connection refused")
        connector = FakeConnector([refused, refused, connection])
        loop = make_loop(connector, FakeCpuProvider([0.1], on_sample=stop_after(token, 1)))

        loop.run()

        assert connector.attempts == 3
        assert backoff.attempts == [1, 2]
        assert len(connection.writes) == 1

    def test_write_failure_starts_fresh_session(self, make_loop, token, unknown_controller):
        """After a reconnect, old samples no longer affect the colors."""
        broken = FakeConnection([unknown_controller], fail_write_after=0)
        healthy = FakeConnection([unknown_controller])
        connector = FakeConnector([broken, healthy])
        gpu = FakeGpuProvider()
        cpu = FakeCpuProvider([1.0, 0.0], on_sample=stop_after(token, 2))
        loop = make_loop(connector, cpu, gpu)

        loop.run()

        assert connector.attempts == 2
        assert broken.closed == 1
        assert gpu.opened == 2
        # Fresh sampler: mean of [0.0] rather than [1.0, 0.0]
        assert healthy.writes == [(0, [WHITE] * 5)]

    def test_metrics_failure_reconnects(self, make_loop, token, gpu_controller):
        connection = FakeConnection([gpu_controller])
        connector = FakeConnector([connection])
        cpu = FakeCpuProvider(
            [MetricsProviderError("cpu", "cpu_times failed"), 0.3], on_sample=stop_after(token, 2)
        )
        loop = make_loop(connector, cpu)

        loop.run()

        assert connector.attempts == 2
        assert connection.closed == 2
        assert len(connection.writes) == 1

    def test_provider_open_failure_retries_in_interactive_mode(self, make_loop, token, backoff, gpu_controller):
        connection = FakeConnection([gpu_controller])
        gpu = FakeGpuProvider(open_failures=1)
        loop = make_loop(
            FakeConnector([connection]), FakeCpuProvider([0.1], on_sample=stop_after(token, 1)), gpu
        )

        loop.run()

        assert backoff.attempts == [1]
        assert gpu.opened == 1
        assert len(connection.writes) == 1

    def test_provider_open_failure_escalates_in_service_mode(self, make_loop, gpu_controller):
        connection = FakeConnection([gpu_controller])
        loop = make_loop(
            FakeConnector([connection]),
            FakeCpuProvider([0.1]),
            FakeGpuProvider(open_failures=5),
            escalate_provider_failures=True,
        )

        with pytest.raises(MetricsProviderError):
            loop.run()

        assert loop.state is LoopState.STOPPED
        assert connection.closed == 1
        assert connection.writes == []


@pytest.mark.unit
class TestStopWhileConnecting:
    """A hung connect never blocks shutdown."""

    def test_stop_interrupts_hung_connect(self, make_loop, token, release_event):
        connector = BlockingConnector(release_event)
        loop = make_loop(connector, FakeCpuProvider([0.1]))
        threading.Timer(0.05, token.request_stop).start()

        start = time.monotonic()
        loop.run()

        assert time.monotonic() - start < 1.0
        assert loop.state is LoopState.STOPPED
        assert connector.attempts == 1

    def test_connect_timeout_counts_as_failed_attempt(self, make_loop, token, backoff, release_event):
        def stop_on_second(attempt):
            if attempt >= 2:
                token.request_stop()

        connector = BlockingConnector(release_event, on_attempt=stop_on_second)
        loop = make_loop(connector, FakeCpuProvider([0.1]), connect_timeout=0.05)

        loop.run()

        assert connector.attempts == 2
        assert backoff.attempts == [1]

    def test_late_connections_are_closed(self, make_loop, token, gpu_controller):
        """Handshakes that finish after their attempt timed out don't leak sockets."""
        def stop_on_third(attempt):
            if attempt >= 3:
                token.request_stop()

        connector = SlowConnector(0.1, [gpu_controller], on_attempt=stop_on_third)
        loop = make_loop(connector, FakeCpuProvider([0.1]), connect_timeout=0.02)

        loop.run()

        assert token.join_abandoned(2.0)
        assert connector.attempts == 3
        assert len(connector.made) == 3
        assert [c.closed for c in connector.made] == [1, 1, 1]
        assert all(c.writes == [] for c in connector.made)

    def test_stop_before_run(self, make_loop, token, gpu_controller):
        connector = FakeConnector([FakeConnection([gpu_controller])])
        loop = make_loop(connector, FakeCpuProvider([0.1]))
        token.request_stop()

        loop.run()

        assert connector.attempts == 0
        assert loop.state is LoopState.STOPPED


@pytest.mark.unit
class TestConstruction:

    def test_from_config(self):
        loop = ControlLoop.from_config(LoadLightConfig(retry_interval=2.5))
        assert loop.state is LoopState.DISCONNECTED
        assert not loop.shutdown.should_stop

    def test_fixed_backoff(self):
        backoff = FixedBackoff(1.0)
        assert [backoff.delay(n) for n in (1, 2, 50)] == [1.0, 1.0, 1.0]
