# powerwall_exporter/services/metric_translator.py

from __future__ import annotations

from typing import Optional

from prometheus_client import Gauge

from powerwall_exporter.config import FieldMapping
from powerwall_exporter.models.energy import EnergyRecord, StateOfEnergyReading, StatusSnapshot
from powerwall_exporter.services.registry import MetricRegistry


NAMESPACE = "tesla_powerwall"

# (metric suffix, help text, EnergyRecord field)
SOURCE_GAUGES = (
    ("instant_power", "Instant real power for source in watts", "instant_power"),
    ("instant_reactive_power", "Instant reactive power for source in VAR", "instant_reactive_power"),
    ("instant_apparent_power", "Instant apparent power for source in VA", "instant_apparent_power"),
    ("frequency", "Line frequency for source in hertz", "frequency"),
    ("energy_exported", "Cumulative energy exported by source in watt-hours", "energy_exported"),
    ("energy_imported", "Cumulative energy imported by source in watt-hours", "energy_imported"),
    ("instant_average_voltage", "Average voltage for source in volts", "instant_average_voltage"),
    ("instant_total_current", "Total current for source in amperes", "instant_total_current"),
)

# Fields the legacy mapping reads from somewhere else.
LEGACY_FIELD_OVERRIDES = {
    "instant_apparent_power": "instant_reactive_power",
}


def metric_name(suffix: str) -> str:
    return f"{NAMESPACE}_{suffix}"


def _source_field(suffix: str, field: str, field_mapping: FieldMapping) -> str:
    if field_mapping is FieldMapping.LEGACY:
        return LEGACY_FIELD_OVERRIDES.get(suffix, field)
    return field


def populate_source(
    registry: MetricRegistry,
    source: str,
    record: EnergyRecord,
    field_mapping: FieldMapping = FieldMapping.STRICT,
) -> None:
    """Set the eight per-source gauges for one meter record."""
    for suffix, help_text, field in SOURCE_GAUGES:
        gauge = registry.define_or_get(metric_name(suffix), Gauge, help_text, ["source"])
        value = getattr(record, _source_field(suffix, field, field_mapping))
        gauge.labels(source=source).set(value)


def build_metric_set(
    snapshot: StatusSnapshot,
    soe: StateOfEnergyReading,
    field_mapping: FieldMapping = FieldMapping.STRICT,
    registry: Optional[MetricRegistry] = None,
) -> MetricRegistry:
    registry = registry or MetricRegistry()

    for source, record in snapshot.records():
        populate_source(registry, source, record, field_mapping)

    battery = registry.define_or_get(
        metric_name("battery_percentage"),
        Gauge,
        "Battery percentage of capacity",
    )
    battery.set(soe.percentage)

    return registry
