# powerwall_exporter/models/energy.py
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator

from powerwall_exporter.exceptions import DecodeError


# The gateway labels the grid connection "site".
SOURCES = ("site", "battery", "load", "solar")

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")
_RFC3339_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})$"
)


def _parse_timestamp(raw: Any) -> datetime | None:
    """Parse an RFC 3339 timestamp; nanosecond fractions are truncated."""
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise DecodeError(f"last_communication_time is not a string: {raw!r}")
    text = raw.strip()
    # fromisoformat also takes bare dates, naive times and the compact form
    if not _RFC3339_RE.match(text):
        raise DecodeError(f"last_communication_time is not RFC 3339: {raw!r}")
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(r"\1", text)
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise DecodeError(f"invalid last_communication_time {raw!r}") from exc


def _number(payload: dict, key: str) -> float:
    value = payload.get(key)
    if value is None:
        return 0.0
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"{key} is not a number: {value!r}")
    try:
        return float(value)
    except OverflowError as exc:
        raise DecodeError(f"{key} is out of range") from exc


def _integer(payload: dict, key: str) -> int:
    value = payload.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"{key} is not a number: {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise DecodeError(f"{key} is not an integer: {value!r}")
    return int(value)


def _require_object(payload: Any, what: str) -> dict:
    if not isinstance(payload, dict):
        raise DecodeError(f"{what} is not a JSON object")
    return payload


@dataclass(frozen=True)
class EnergyRecord:
    last_communication_time: datetime | None
    instant_power: float            # W
    instant_reactive_power: float   # VAR
    instant_apparent_power: float   # VA
    frequency: float                # Hz
    energy_exported: float          # Wh, cumulative
    energy_imported: float          # Wh, cumulative
    instant_average_voltage: float  # V
    instant_total_current: float    # A
    timeout: int                    # seconds

    @classmethod
    def from_dict(cls, payload: Any) -> EnergyRecord:
        data = _require_object(payload, "meter record")
        return cls(
            last_communication_time=_parse_timestamp(data.get("last_communication_time")),
            instant_power=_number(data, "instant_power"),
            instant_reactive_power=_number(data, "instant_reactive_power"),
            instant_apparent_power=_number(data, "instant_apparent_power"),
            frequency=_number(data, "frequency"),
            energy_exported=_number(data, "energy_exported"),
            energy_imported=_number(data, "energy_imported"),
            instant_average_voltage=_number(data, "instant_average_voltage"),
            instant_total_current=_number(data, "instant_total_current"),
            timeout=_integer(data, "timeout"),
        )


@dataclass(frozen=True)
class StatusSnapshot:
    site: EnergyRecord
    battery: EnergyRecord
    load: EnergyRecord
    solar: EnergyRecord

    @classmethod
    def from_dict(cls, payload: Any) -> StatusSnapshot:
        data = _require_object(payload, "meters/aggregates response")
        records = {}
        for source in SOURCES:
            if source not in data:
                raise DecodeError(f"meters/aggregates response has no '{source}' entry")
            try:
                records[source] = EnergyRecord.from_dict(data[source])
            except DecodeError as exc:
                raise DecodeError(f"{source}: {exc}") from exc
        return cls(**records)

    def records(self) -> Iterator[tuple[str, EnergyRecord]]:
        for source in SOURCES:
            yield source, getattr(self, source)


@dataclass(frozen=True)
class StateOfEnergyReading:
    percentage: float

    @classmethod
    def from_dict(cls, payload: Any) -> StateOfEnergyReading:
        data = _require_object(payload, "system_status/soe response")
        if data.get("percentage") is None:
            raise DecodeError("system_status/soe response has no 'percentage'")
        return cls(percentage=_number(data, "percentage"))
