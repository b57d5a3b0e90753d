"""Map controller topologies to per-LED colors using the rule table."""

import logging
from dataclasses import dataclass
from typing import Optional

from loadlight.colors import block_colors, gradient_colors
from loadlight.exceptions import TopologyMismatchError
from loadlight.models import Color, ColorEndpoints, ControllerTopology

from .registry import RuleRegistry
from .schema import LedSpan, LoadSource, Policy

logger = logging.getLogger(__name__)

_POLICIES = {
    Policy.BLOCK: block_colors,
    Policy.GRADIENT: gradient_colors,
}


@dataclass(frozen=True)
class LoadSignals:
    """Smoothed CPU and GPU load for one cycle, each in [0, 1]."""

    cpu: float = 0.0
    gpu: float = 0.0

    def value(self, source: LoadSource) -> float:
        return self.gpu if source is LoadSource.GPU else self.cpu


@dataclass(frozen=True)
class SpanPlan:
    """A span resolved against a concrete topology."""

    span: LedSpan
    count: int
    zone: Optional[str] = None


def resolve_spans(spans: list[LedSpan], led_count: int, zone: Optional[str] = None) -> list[SpanPlan]:
    """
    Lay spans over ``led_count`` LEDs in order.

    Fixed-size spans are cut short when the LEDs run out, so a one-LED head
    span on an empty zone simply covers nothing.
    """
    plans = []
    remaining = led_count
    for span in spans:
        count = remaining if span.leds is None else min(span.leds, remaining)
        plans.append(SpanPlan(span=span, count=count, zone=zone))
        remaining -= count
    return plans


def render_span(plan: SpanPlan, loads: LoadSignals, endpoints: ColorEndpoints) -> list[Color]:
    """Colors for one resolved span."""
    span = plan.span
    load = loads.value(span.source)
    if span.invert:
        load = 1.0 - load
    if span.swap_colors:
        endpoints = endpoints.swapped()
    return _POLICIES[span.policy](load, endpoints.start, endpoints.end, plan.count)


class TopologyDispatcher:
    """
    Decides, for each controller, which LEDs show which load and how.

    Resolution order:

    1. A rule with whole-controller ``spans`` covers every LED.
    2. A rule with ``zones`` is applied zone by zone in the controller's zone
       order; a zone the rule doesn't list is a TopologyMismatchError.
    3. A controller without a rule gets the fallback span on every LED.
    """

    def __init__(self, rules: RuleRegistry, endpoints: ColorEndpoints):
        """
        Args:
            rules: Rule registry to look controllers up in
            endpoints: Start/end colors for every interpolation
        """
        self._rules = rules
        self._endpoints = endpoints

    @property
    def endpoints(self) -> ColorEndpoints:
        return self._endpoints

    def plan(self, topology: ControllerTopology) -> list[SpanPlan]:
        """
        Resolve the spans that apply to a controller.

        Raises:
            TopologyMismatchError: If a zone has no rule on a controller with zone rules
        """
        rule = self._rules.find(topology.name)
        if rule is None:
            return resolve_spans([self._rules.fallback], topology.led_count)

        if rule.spans:
            return resolve_spans(rule.spans, topology.led_count)

        plans: list[SpanPlan] = []
        for zone in topology.zones:
            zone_rule = rule.find_zone(zone.name)
            if zone_rule is None:
                raise TopologyMismatchError(
                    topology.name, zone.name, [z.zone for z in rule.zones]
                )
            plans.extend(resolve_spans(zone_rule.spans, zone.led_count, zone=zone.name))
        return plans

    def assign(self, topology: ControllerTopology, loads: LoadSignals) -> list[Color]:
        """
        Compute one color per LED of a controller.

        Raises:
            TopologyMismatchError: If a zone has no rule on a controller with zone rules
        """
        colors: list[Color] = []
        for plan in self.plan(topology):
            colors.extend(render_span(plan, loads, self._endpoints))
        return colors
