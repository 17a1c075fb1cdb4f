"""
Thing spec filter rule registry.

Rules are collected once at startup, statically declared ones first and
configuration-declared ones after, then ordered by priority. Python's sort
is stable, so rules of equal priority keep their insertion order and a
code rule beats a config rule with the same priority.
"""

from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from shared.errors import ConfigurationError
from shared.logging import get_logger
from .models import FilterSource, ThingSpecFilterRule

logger = get_logger("thingspec.filter_registry")


class ThingSpecFilterRegistry:
    """Immutable, priority-ordered set of filter rules."""

    def __init__(self, rules: Iterable[ThingSpecFilterRule] = ()):
        ordered = list(rules)
        ordered.sort(key=lambda r: r.priority, reverse=True)
        self._rules: Tuple[ThingSpecFilterRule, ...] = tuple(ordered)

    @property
    def rules(self) -> Tuple[ThingSpecFilterRule, ...]:
        """Rules in resolution order."""
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[ThingSpecFilterRule]:
        return iter(self._rules)

    def resolve(self, model: Optional[str]) -> Optional[ThingSpecFilterRule]:
        """Find the matching filter rule with the highest priority."""
        if not model:
            return None

        for rule in self._rules:
            if rule.matches(model):
                return rule

        return None

    def shadowed_rules(self) -> List[ThingSpecFilterRule]:
        """Rules that can never be resolved because an earlier rule has the same pattern."""
        seen = set()
        shadowed = []
        for rule in self._rules:
            if rule.model_pattern in seen:
                shadowed.append(rule)
            seen.add(rule.model_pattern)
        return shadowed

    def get_stats(self) -> Dict[str, Any]:
        """Get registry statistics."""
        return {
            "total_rules": len(self._rules),
            "code_rules": len([r for r in self._rules if r.source == FilterSource.CODE]),
            "config_rules": len([r for r in self._rules if r.source == FilterSource.CONFIG]),
            "patterns": [r.model_pattern for r in self._rules],
        }


def _check_source(rules: Iterable[ThingSpecFilterRule], source: FilterSource) -> List[ThingSpecFilterRule]:
    checked = []
    for rule in rules:
        if rule.source != source:
            raise ConfigurationError(
                f"Rule '{rule.name or rule.model_pattern}' was declared as {rule.source.value} "
                f"but supplied as a {source.value} rule",
                details=rule.describe()
            )
        checked.append(rule)
    return checked


def build_filter_registry(
    code_rules: Iterable[ThingSpecFilterRule] = (),
    config_rules: Iterable[ThingSpecFilterRule] = ()
) -> ThingSpecFilterRegistry:
    """Build the registry from statically declared and configuration rules."""
    code_rules = _check_source(code_rules, FilterSource.CODE)
    config_rules = _check_source(config_rules, FilterSource.CONFIG)

    if not code_rules:
        logger.info("No code-based filter found")
    if not config_rules:
        logger.debug("No config-based filters found")

    registry = ThingSpecFilterRegistry(code_rules + config_rules)

    logger.info("Loaded thing spec filter rules", count=len(registry))
    for rule in registry.rules:
        logger.info(
            "Thing spec filter rule",
            name=rule.name,
            pattern=rule.model_pattern,
            mode=rule.mode.value,
            priority=rule.priority,
            source=rule.source.value
        )

    for rule in registry.shadowed_rules():
        logger.warning(
            "Thing spec filter rule is unreachable, an earlier rule uses the same pattern",
            name=rule.name,
            pattern=rule.model_pattern,
            priority=rule.priority,
            source=rule.source.value
        )

    return registry
