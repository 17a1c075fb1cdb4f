"""
Configuration-declared thing spec filter rules.

Rules are read from the environment (``MSC_THING_SPEC_FILTER_MODELS`` as
JSON) or from a YAML file shaped like::

    msc:
      thing-spec-filter:
        models:
          em300:
            modelPattern: "EM300-*"
            mode: BLACKLIST
            priority: 10
            ids: [rssi, snr]

The ``msc``/``thing-spec-filter`` nesting is optional; a top-level ``models``
mapping is accepted as well. The mapping keys are rule names and only serve
diagnostics.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple, Type

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from shared.errors import ConfigurationError
from shared.logging import get_logger
from .filters.matcher import validate_model_pattern
from .filters.models import DEFAULT_PRIORITY, FilterMode, FilterSource, ThingSpecFilterRule

logger = get_logger("thingspec.config")

CONFIG_SECTION = ("msc", "thing-spec-filter")


class FilterConfig(BaseModel):
    """One configuration-declared filter rule."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid", protected_namespaces=())

    # Device model pattern (supports the * wildcard)
    model_pattern: str = Field(..., alias="modelPattern")
    mode: FilterMode = FilterMode.WHITELIST
    priority: int = DEFAULT_PRIORITY
    ids: Set[str] = Field(default_factory=set)

    @field_validator("model_pattern")
    @classmethod
    def _check_model_pattern(cls, v: str) -> str:
        try:
            return validate_model_pattern(v)
        except ConfigurationError as err:
            raise ValueError(err.message) from None

    @field_validator("mode", mode="before")
    @classmethod
    def _normalise_mode(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("priority", mode="before")
    @classmethod
    def _default_priority(cls, v: Any) -> Any:
        return DEFAULT_PRIORITY if v is None else v

    @field_validator("ids", mode="before")
    @classmethod
    def _default_ids(cls, v: Any) -> Any:
        return set() if v is None else v


class ThingSpecFilterConfig(BaseSettings):
    """Thing spec filter rules keyed by rule name."""

    model_config = SettingsConfigDict(
        env_prefix="MSC_THING_SPEC_FILTER_",
        case_sensitive=False,
        extra="ignore"
    )

    models: Dict[str, FilterConfig] = Field(default_factory=dict)

    @field_validator("models", mode="before")
    @classmethod
    def _default_models(cls, v: Any) -> Any:
        return {} if v is None else v


class ThingSpecFilterFileConfig(ThingSpecFilterConfig):
    """Filter rules read from a YAML file. The environment is not consulted."""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings,)


def _extract_section(data: Any) -> Dict[str, Any]:
    """Locate the filter section in a parsed YAML document."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("Thing spec filter file must contain a mapping")

    section = data
    for key in CONFIG_SECTION:
        if isinstance(section, dict) and key in section:
            section = section[key]
        else:
            break

    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigurationError("Thing spec filter section must be a mapping")
    return section


def load_filter_config(path: Optional[str] = None) -> ThingSpecFilterConfig:
    """Load filter rules from ``path``, or from the environment when no path is given."""
    if path is None:
        try:
            return ThingSpecFilterConfig()
        except PydanticValidationError as e:
            raise ConfigurationError(
                "Invalid thing spec filter configuration in environment",
                details={"errors": e.errors(include_url=False, include_context=False)}
            ) from e

    file_path = Path(path)
    try:
        with file_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read thing spec filter file: {file_path}",
            details={"error": str(e)}
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in thing spec filter file: {file_path}",
            details={"error": str(e)}
        ) from e

    section = _extract_section(data)
    try:
        config = ThingSpecFilterFileConfig(**section)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid thing spec filter configuration in {file_path}",
            details={"errors": e.errors(include_url=False, include_context=False)}
        ) from e

    logger.debug("Loaded thing spec filter file", path=str(file_path), rules=len(config.models))
    return config


def rules_from_config(config: ThingSpecFilterConfig) -> List[ThingSpecFilterRule]:
    """Build one CONFIG rule per configured entry, in mapping order."""
    rules = []
    for name, entry in config.models.items():
        rule = ThingSpecFilterRule(
            model_pattern=entry.model_pattern,
            mode=entry.mode,
            priority=entry.priority,
            ids=frozenset(entry.ids),
            source=FilterSource.CONFIG,
            name=name
        )
        rules.append(rule)
        logger.debug("Loaded config-based filter", name=name, pattern=rule.model_pattern)
    return rules
