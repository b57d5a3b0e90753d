"""Pytest fixtures for tests.

Fakes stand in for OpenRGB, psutil and NVML so the control loop can run
without hardware.
"""

import threading
from typing import Callable, Optional

import pytest

from loadlight.devices import RuleRegistry, RuleTableSchema, TopologyDispatcher
from loadlight.exceptions import ControllerConnectionError, MetricsProviderError
from loadlight.metrics import MetricsSource
from loadlight.models import Color, ColorEndpoints, ControllerTopology, Zone

FAKE_ADDRESS = "fake-openrgb:6742"


class FakeConnection:
    """In-memory LightingConnection that records every write."""

    def __init__(self, topologies: list[ControllerTopology], fail_write_after: Optional[int] = None):
        self.topologies = list(topologies)
        self.writes: list[tuple[int, list[Color]]] = []
        self.closed = 0
        self.fail_write_after = fail_write_after

    def controller_count(self) -> int:
        return len(self.topologies)

    def get_topology(self, controller_id: int) -> ControllerTopology:
        return self.topologies[controller_id]

    def write_leds(self, controller_id: int, colors) -> None:
        if self.fail_write_after is not None and len(self.writes) >= self.fail_write_after:
            raise ControllerConnectionError(
                FAKE_ADDRESS, "connection reset by peer", operation="write LEDs"
            )
        self.writes.append((controller_id, list(colors)))

    def close(self) -> None:
        self.closed += 1


class FakeConnector:
    """LightingConnector that plays back a script of outcomes.

    Each connect() pops the next outcome (an exception to raise or a
    connection to return); the last outcome repeats forever.
    """

    address = FAKE_ADDRESS

    def __init__(self, outcomes: list):
        self._outcomes = list(outcomes)
        self.attempts = 0

    def connect(self):
        self.attempts += 1
        outcome = self._outcomes.pop(0) if len(self._outcomes) > 1 else self._outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeCpuProvider:
    """Returns scripted CPU readings; the last one repeats."""

    def __init__(self, values: list, on_sample: Optional[Callable[[int], None]] = None):
        self.values = list(values)
        self.on_sample = on_sample
        self.samples = 0
        self.windows: list[float] = []

    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    def sample_cpu_busy_fraction(self, window: float, wait: Callable[[float], None]) -> float:
        self.samples += 1
        if self.on_sample is not None:
            self.on_sample(self.samples)

        self.windows.append(window)
        wait(window)

        value = self.values[min(self.samples, len(self.values)) - 1]
        if isinstance(value, Exception):
            raise value
        return value


class FakeGpuProvider:
    """Returns a fixed GPU reading; can refuse to open a number of times."""

    def __init__(self, value: float = 0.0, open_failures: int = 0):
        self.value = value
        self.open_failures = open_failures
        self.opened = 0
        self.closed = 0

    def open(self) -> None:
        if self.open_failures > 0:
            self.open_failures -= 1
            raise MetricsProviderError("gpu", "NVML Shared Library Not Found")
        self.opened += 1

    def close(self) -> None:
        self.closed += 1

    def sample_gpu_busy_fraction(self) -> float:
        return self.value


class RecordingBackoff:
    """Zero-delay backoff that remembers which attempts it was asked about."""

    def __init__(self):
        self.attempts: list[int] = []

    def delay(self, attempt: int) -> float:
        self.attempts.append(attempt)
        return 0.0


def stop_after(token, cycles: int) -> Callable[[int], None]:
    """on_sample hook that requests a stop when sample number ``cycles + 1`` starts."""
    def hook(sample_number: int) -> None:
        if sample_number > cycles:
            token.request_stop()
    return hook


# Rule table written against generic controller names
PLACEHOLDER_RULES = {
    "rules": [
        {
            "name": "memory-module controller",
            "spans": [{"policy": "gradient", "source": "cpu", "invert": True, "swap_colors": True}],
        },
        {
            "name": "discrete-GPU controller",
            "spans": [{"policy": "block", "source": "gpu"}],
        },
        {
            "name": "motherboard controller",
            "zones": [
                {"zone": "bottom strip", "spans": [{"policy": "block", "source": "cpu"}]},
                {"zone": "top strip", "spans": [{"policy": "gradient", "source": "cpu"}]},
                {
                    "zone": "onboard indicator",
                    "spans": [
                        {"policy": "block", "source": "cpu", "leds": 1},
                        {"policy": "block", "source": "cpu"},
                    ],
                },
            ],
        },
    ],
    "fallback": {"policy": "block", "source": "cpu"},
}


@pytest.fixture
def endpoints():
    """Default white-to-red endpoints."""
    return ColorEndpoints(start=Color.white(), end=Color.red())


@pytest.fixture
def rule_registry():
    """Registry built from the placeholder rule table."""
    return RuleRegistry(schema=RuleTableSchema.model_validate(PLACEHOLDER_RULES))


@pytest.fixture
def dispatcher(rule_registry, endpoints):
    """Dispatcher over the placeholder rules."""
    return TopologyDispatcher(rule_registry, endpoints)


@pytest.fixture
def gpu_controller():
    return ControllerTopology(
        controller_id=0,
        name="discrete-GPU controller",
        zones=(Zone(name="card", led_count=4),),
    )


@pytest.fixture
def unknown_controller():
    return ControllerTopology(
        controller_id=0,
        name="some fan hub",
        zones=(Zone(name="fan 1", led_count=2), Zone(name="fan 2", led_count=3)),
    )


@pytest.fixture
def make_metrics():
    """Build a MetricsSource from fake providers."""
    def factory(cpu: FakeCpuProvider, gpu: Optional[FakeGpuProvider] = None) -> MetricsSource:
        return MetricsSource(cpu, gpu or FakeGpuProvider())
    return factory


@pytest.fixture
def release_event():
    """Event released at teardown so blocked fake calls can finish."""
    event = threading.Event()
    yield event
    event.set()

