"""
Thing spec filter package.

Selects a reduced view of a device thing spec (properties, events and
services) based on the device model. Rules come from two origins,
statically declared providers and configuration entries, and are merged
once at startup into an immutable registry ordered by priority.

Modules of interest:
- models: Rule value type, thing spec document models and API payloads.
- matcher: Wildcard device model patterns.
- expander: Parent ids implied by dotted ids.
- providers: Statically declared filter rules.
- registry: Rule ordering and resolution for a device model.
- engine: Whitelist/blacklist filtering of a thing spec.
"""

from .engine import ThingSpecFilterService
from .models import FilterMode, FilterSource, ThingSpec, ThingSpecFilterRule
from .registry import ThingSpecFilterRegistry, build_filter_registry

__all__ = [
    "FilterMode",
    "FilterSource",
    "ThingSpec",
    "ThingSpecFilterRule",
    "ThingSpecFilterRegistry",
    "ThingSpecFilterService",
    "build_filter_registry",
]
