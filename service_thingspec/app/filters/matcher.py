"""
Device model pattern matching.

A pattern is a literal device model where ``*`` stands for any run of
characters, including none. Matching is anchored at both ends, so
``"EM500-SMTC*"`` matches ``"EM500-SMTC"`` and ``"EM500-SMTC-123"`` but not
``"XEM500-SMTC"``.
"""

import re
from functools import lru_cache
from typing import Any, Optional

from shared.errors import ConfigurationError

WILDCARD = "*"


@lru_cache(maxsize=256)
def compile_model_pattern(pattern: str) -> re.Pattern:
    """Translate a wildcard pattern into a compiled regular expression.

    Every character other than the wildcard is escaped, so dots, brackets,
    plus signs and the like only ever match themselves.
    """
    regex = ".*".join(re.escape(part) for part in pattern.split(WILDCARD))
    return re.compile(regex, re.DOTALL)


def validate_model_pattern(pattern: Any) -> str:
    """Return ``pattern`` if it can be used as a rule pattern.

    Raises ConfigurationError for anything that is not a non-blank string.
    """
    if not isinstance(pattern, str):
        raise ConfigurationError(
            "Model pattern must be a string",
            details={"model_pattern": repr(pattern)}
        )

    if not pattern.strip():
        raise ConfigurationError(
            "Model pattern must not be empty",
            details={"model_pattern": pattern}
        )

    return pattern


def matches(pattern: Optional[str], model: Optional[str]) -> bool:
    """Check whether ``model`` matches the wildcard ``pattern``."""
    if not pattern or not model:
        return False

    return compile_model_pattern(pattern).fullmatch(model) is not None
