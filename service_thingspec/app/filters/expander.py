"""
Expansion of dotted ids to the parent ids they imply.
"""

from typing import FrozenSet, Iterable

ID_SEPARATOR = "."


def expand_nested_ids(ids: Iterable[str]) -> FrozenSet[str]:
    """Expand nested ids to include their parent ids.

    e.g. ``"temperature_mutation_alarm.temperature"`` ->
    ``{"temperature_mutation_alarm", "temperature_mutation_alarm.temperature"}``

    Only the top-level item is ever matched against these ids; listing a
    child facet keeps its owner from being filtered out.
    """
    ids = frozenset(ids)
    expanded = set(ids)

    for identifier in ids:
        if ID_SEPARATOR not in identifier:
            continue

        parts = identifier.split(ID_SEPARATOR)
        for depth in range(1, len(parts)):
            parent = ID_SEPARATOR.join(parts[:depth])
            # Leading separators would otherwise yield an empty parent
            if parent:
                expanded.add(parent)

    return frozenset(expanded)
