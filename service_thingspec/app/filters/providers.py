"""
Statically declared thing spec filter rules.

Subclass ThingSpecFilterProvider and list the subclass in DEFAULT_PROVIDERS
to ship a filter rule with the service.
"""

from typing import FrozenSet, Optional

from .models import DEFAULT_PRIORITY, FilterMode, FilterSource, ThingSpecFilterRule


class ThingSpecFilterProvider:
    """Declares one filter rule through class attributes.

    ``priority`` may be left unset, in which case the default priority
    applies when the rule is built.
    """
    model_pattern: str
    mode: FilterMode
    ids: FrozenSet[str] = frozenset()
    priority: Optional[int] = None


class EM500SMTCThingSpecFilter(ThingSpecFilterProvider):
    """Filter for the EM500-SMTC device model.

    Only keeps the essential properties, events and services.
    """
    model_pattern = "EM500-SMTC*"
    mode = FilterMode.WHITELIST
    priority = 100
    ids = frozenset({
        "device_status",
        "ipso_version",
        "sn",
        "hardware_version",
        "firmware_version",
        "lorawan_class",
        "battery",
        "conductivity",
        "temperature",
        "soil_moisture",
        "temperature_mutation_alarm",
        "temperature_mutation_alarm.temperature",
        "temperature_mutation_alarm.temperature_mutation_value",
        "temperature_mutation_alarm.alarm_type",
        "historical_data_retrieve",
        "historical_data_retrieve.timestamp",
        "historical_data_retrieve.electrical_conductivity",
        "historical_data_retrieve.temperature",
        "historical_data_retrieve.soil_moisture",
        "reporting_interval",
        "time_zone",
        "reset_collection_settings",
        "reset_collection_settings.times",
        "reset_collection_settings.interval",
        "sensor_temperature_enable",
        "sensor_temperature_enable.channel",
        "sensor_temperature_enable.enable",
        "sensor_humidity_enable",
        "sensor_humidity_enable.channel",
        "sensor_humidity_enable.enable",
        "sensor_electrical_conductivity_enable",
        "sensor_electrical_conductivity_enable.channel",
        "sensor_electrical_conductivity_enable.enable",
        "collection_interval",
        "temperature_calibration_settings",
        "temperature_calibration_settings.id",
        "temperature_calibration_settings.enable",
        "temperature_calibration_settings.value",
        "humidity_calibration_settings",
        "humidity_calibration_settings.id",
        "humidity_calibration_settings.enable",
        "humidity_calibration_settings.value",
        "electrical_conductivity_calibration_settings",
        "electrical_conductivity_calibration_settings.id",
        "electrical_conductivity_calibration_settings.enable",
        "electrical_conductivity_calibration_settings.value",
        "data_storage_enable",
        "retransmission_enable",
        "retransmission_interval_settings",
        "retransmission_interval_settings.type",
        "retransmission_interval_settings.interval",
        "retrieval_interval",
        "retrieval_interval.type",
        "retrieval_interval.interval",
        "clear_historical_data",
        "retrieve_historical_data_by_time",
        "retrieve_historical_data_by_time.time",
        "retrieve_historical_data_by_time_range",
        "retrieve_historical_data_by_time_range.start_time",
        "retrieve_historical_data_by_time_range.end_time",
        "stop_historical_data_retrival",
        "synchronize_time",
        "query_device_status",
        "reboot",
    })


DEFAULT_PROVIDERS = (
    EM500SMTCThingSpecFilter(),
)


def rule_from_provider(provider: ThingSpecFilterProvider) -> ThingSpecFilterRule:
    """Build the CODE rule declared by ``provider``."""
    priority = getattr(provider, "priority", None)

    return ThingSpecFilterRule(
        model_pattern=getattr(provider, "model_pattern", None),
        mode=getattr(provider, "mode", None),
        priority=DEFAULT_PRIORITY if priority is None else priority,
        ids=getattr(provider, "ids", None),
        source=FilterSource.CODE,
        name=type(provider).__name__
    )
