"""
Thing spec filtering engine.
"""

from typing import Any, List, Optional, Sequence, TypeVar

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .expander import expand_nested_ids
from .models import FilterMode, ThingSpec, ThingSpecFilterRule
from .registry import ThingSpecFilterRegistry

T = TypeVar("T")

COLLECTIONS = ("properties", "events", "services")


def _item_id(item: Any) -> Optional[str]:
    """Identifier of a thing spec item, None when it has none."""
    identifier = item.get("id") if isinstance(item, dict) else getattr(item, "id", None)
    return identifier if isinstance(identifier, str) else None


def filter_items(items: Sequence[T], rule: ThingSpecFilterRule) -> List[T]:
    """Filter items based on whitelist or blacklist mode.

    Kept items are the same objects, in their original order.
    """
    if not items:
        return []

    if not rule.ids:
        # Whitelist with no ids keeps nothing, blacklist keeps everything
        if rule.mode == FilterMode.WHITELIST:
            return []
        return list(items)

    expanded_ids = expand_nested_ids(rule.ids)
    keep_members = rule.mode == FilterMode.WHITELIST

    filtered = []
    for item in items:
        identifier = _item_id(item)
        if identifier is None:
            continue

        if keep_members == (identifier in expanded_ids):
            filtered.append(item)

    return filtered


class ThingSpecFilterService:
    """Service for filtering a thing spec based on the device model."""

    def __init__(self, registry: ThingSpecFilterRegistry, metrics: Optional[MetricsCollector] = None):
        self.logger = get_logger("thingspec.filter_engine")
        self.registry = registry
        self.metrics = metrics

    def resolve(self, device_model: Optional[str]) -> Optional[ThingSpecFilterRule]:
        """Rule that applies to ``device_model``, if any."""
        return self.registry.resolve(device_model)

    def filter(self, thing_spec: Optional[ThingSpec], device_model: Optional[str]) -> Optional[ThingSpec]:
        """Filter a thing spec based on the device model.

        Returns the original thing spec when it is missing, the device model
        is empty, or no filter rule matches the model.
        """
        if thing_spec is None:
            self._record_outcome("no_document")
            return thing_spec

        if not device_model:
            self._record_outcome("no_model")
            return thing_spec

        rule = self.registry.resolve(device_model)
        if rule is None:
            self.logger.debug("No filter rule matches device model", device_model=device_model)
            self._record_outcome("no_rule")
            return thing_spec

        self.logger.info(
            "Applying filter rule for device model",
            device_model=device_model,
            pattern=rule.model_pattern,
            mode=rule.mode.value,
            priority=rule.priority,
            source=rule.source.value
        )

        if self.metrics is not None:
            with self.metrics.time_operation("thing_spec_filter_duration_seconds"):
                filtered = self.apply_filter(thing_spec, rule)
        else:
            filtered = self.apply_filter(thing_spec, rule)

        self._record_outcome("filtered")
        return filtered

    def apply_filter(self, thing_spec: ThingSpec, rule: ThingSpecFilterRule) -> ThingSpec:
        """Apply a filter rule to a thing spec.

        Each collection is filtered independently with the same rule. A
        collection that is missing stays missing.
        """
        values = {}
        for collection in COLLECTIONS:
            items = getattr(thing_spec, collection)
            if items is None:
                continue

            kept = filter_items(items, rule)
            values[collection] = kept

            removed = len(items) - len(kept)
            if items:
                self.logger.info(
                    "Filtered thing spec collection",
                    collection=collection,
                    before=len(items),
                    after=len(kept),
                    filtered_out=removed
                )
            if self.metrics is not None:
                self.metrics.record_items_removed(collection, removed)

        # No validation, so the kept items stay the very same objects
        return ThingSpec.model_construct(**values)

    def _record_outcome(self, outcome: str):
        if self.metrics is not None:
            self.metrics.record_filter_request(outcome)
