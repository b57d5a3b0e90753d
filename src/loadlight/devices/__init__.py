"""Per-controller lighting rules and the dispatcher that applies them."""

from .dispatcher import LoadSignals, SpanPlan, TopologyDispatcher, render_span, resolve_spans
from .registry import DEFAULT_RULES_PATH, RuleRegistry
from .schema import DeviceRule, LedSpan, LoadSource, Policy, RuleTableSchema, ZoneRule

__all__ = [
    "DEFAULT_RULES_PATH",
    "DeviceRule",
    "LedSpan",
    "LoadSignals",
    "LoadSource",
    "Policy",
    "RuleRegistry",
    "RuleTableSchema",
    "SpanPlan",
    "TopologyDispatcher",
    "ZoneRule",
    "render_span",
    "resolve_spans",
]
