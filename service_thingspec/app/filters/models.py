"""
Thing spec filter data models.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.errors import ConfigurationError
from .matcher import matches, validate_model_pattern

DEFAULT_PRIORITY = 0


class FilterMode(str, Enum):
    """Filter mode."""
    # Only keep specified properties/events/services
    WHITELIST = "whitelist"
    # Exclude specified properties/events/services
    BLACKLIST = "blacklist"


class FilterSource(str, Enum):
    """Origin of a filter rule."""
    CODE = "code"
    CONFIG = "config"


@dataclass(frozen=True)
class ThingSpecFilterRule:
    """Thing spec filter rule.

    ``model_pattern`` supports the ``*`` wildcard, e.g. ``"EM500-SMTC*"``
    matches every model starting with ``"EM500-SMTC"``. Higher ``priority``
    wins when several rules match the same model.
    """
    model_pattern: str
    mode: FilterMode
    priority: int = DEFAULT_PRIORITY
    ids: FrozenSet[str] = frozenset()
    source: FilterSource = FilterSource.CODE
    name: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        validate_model_pattern(self.model_pattern)
        try:
            mode = FilterMode(self.mode)
        except ValueError as err:
            raise ConfigurationError(
                f"Unknown filter mode for pattern '{self.model_pattern}'",
                details={"mode": repr(self.mode)}
            ) from err
        object.__setattr__(self, "mode", mode)
        if isinstance(self.priority, bool) or not isinstance(self.priority, int):
            raise ConfigurationError(
                f"Priority for pattern '{self.model_pattern}' must be an integer",
                details={"priority": repr(self.priority)}
            )
        try:
            source = FilterSource(self.source)
        except ValueError as err:
            raise ConfigurationError(
                f"Unknown rule source for pattern '{self.model_pattern}'",
                details={"source": repr(self.source)}
            ) from err
        object.__setattr__(self, "source", source)
        ids = () if self.ids is None else self.ids
        if not isinstance(ids, (str, bytes)) and isinstance(ids, Iterable):
            ids = tuple(ids)
        if not isinstance(ids, tuple) or not all(isinstance(i, str) for i in ids):
            raise ConfigurationError(
                f"Ids for pattern '{self.model_pattern}' must be a collection of strings",
                details={"ids": repr(self.ids)}
            )
        object.__setattr__(self, "ids", frozenset(ids))

    def matches(self, model: Optional[str]) -> bool:
        """Check if the model matches the pattern."""
        return matches(self.model_pattern, model)

    def describe(self) -> Dict[str, Any]:
        """Summary used for logging and API responses."""
        return {
            "name": self.name,
            "model_pattern": self.model_pattern,
            "mode": self.mode.value,
            "priority": self.priority,
            "source": self.source.value,
            "ids": sorted(self.ids),
        }


class TslItemSpec(BaseModel):
    """One property, event or service of a thing spec.

    Only ``id`` is interpreted; every other field is carried as is.
    """
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None


class TslPropertySpec(TslItemSpec):
    """Property of a thing spec."""


class TslEventSpec(TslItemSpec):
    """Event of a thing spec."""


class TslServiceSpec(TslItemSpec):
    """Service of a thing spec."""


class ThingSpec(BaseModel):
    """Thing spec of a device."""
    model_config = ConfigDict(extra="allow")

    properties: Optional[List[TslPropertySpec]] = None
    events: Optional[List[TslEventSpec]] = None
    services: Optional[List[TslServiceSpec]] = None


class FilterRuleResponse(BaseModel):
    """Response model describing a filter rule."""
    model_config = ConfigDict(protected_namespaces=())

    name: Optional[str] = None
    model_pattern: str
    mode: FilterMode
    priority: int
    source: FilterSource
    ids: List[str] = Field(default_factory=list)

    @classmethod
    def from_rule(cls, rule: ThingSpecFilterRule) -> "FilterRuleResponse":
        return cls(**rule.describe())


class ThingSpecFilterRequest(BaseModel):
    """Request model for filtering a thing spec."""
    model_config = ConfigDict(populate_by_name=True)

    device_model: Optional[str] = Field(None, alias="deviceModel", description="Device model")
    thing_spec: Optional[ThingSpec] = Field(None, alias="thingSpec", description="Thing spec to filter")


class ThingSpecFilterResponse(BaseModel):
    """Response model for a filtered thing spec."""
    model_config = ConfigDict(populate_by_name=True)

    device_model: Optional[str] = Field(None, alias="deviceModel")
    filtered: bool = Field(..., description="Whether a filter rule was applied")
    rule: Optional[FilterRuleResponse] = Field(None, description="Applied filter rule")
    thing_spec: Optional[ThingSpec] = Field(None, alias="thingSpec")


class FilterRuleListResponse(BaseModel):
    """Response model for the rule list."""
    rules: List[FilterRuleResponse]
    total: int


class FilterRuleResolveResponse(BaseModel):
    """Response model for resolving the rule of a device model."""
    device_model: Optional[str] = None
    matched: bool
    rule: Optional[FilterRuleResponse] = None
