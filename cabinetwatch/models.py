"""Pydantic models for CabinetWatch snapshots and assessments."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Severity(str, Enum):
    """Severity levels for readings and aggregates."""
    NORMAL = "normal"
    CAUTION = "caution"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Numeric rank (NORMAL=0 ... CRITICAL=3)."""
        return _RANKS[self]

    def _rank_of(self, other: object) -> int:
        # Plain strings would otherwise fall back to str ordering
        if not isinstance(other, Severity):
            raise TypeError(
                f"cannot compare Severity with {type(other).__name__}"
            )
        return other.rank

    def __lt__(self, other: "Severity") -> bool:
        """Compare severity levels (CRITICAL > WARNING > CAUTION > NORMAL).

        Only Severity operands compare; anything else raises TypeError.
        """
        return self.rank < self._rank_of(other)

    def __le__(self, other: "Severity") -> bool:
        return self.rank <= self._rank_of(other)

    def __gt__(self, other: "Severity") -> bool:
        return self.rank > self._rank_of(other)

    def __ge__(self, other: "Severity") -> bool:
        return self.rank >= self._rank_of(other)


_RANKS = {
    Severity.NORMAL: 0,
    Severity.CAUTION: 1,
    Severity.WARNING: 2,
    Severity.CRITICAL: 3,
}


class FrozenModel(BaseModel):
    """Immutable base for every snapshot and assessment value."""
    model_config = ConfigDict(frozen=True)


def _ensure_unique_ids(items: tuple[Any, ...], scope: str) -> tuple[Any, ...]:
    seen: set[str] = set()
    for item in items:
        if item.id in seen:
            raise ValueError(f"duplicate {scope} id: {item.id}")
        seen.add(item.id)
    return items


# Snapshot (input) models
# Numeric readings are strict: ints and floats only, no bools or numeric strings.


class SensorPoint(FrozenModel):
    """A single temperature probe on a server."""
    id: str = Field(description="Probe identifier, unique within its server")
    name: str = Field(description="Display name")
    temperature: float = Field(strict=True, description="Probe temperature (°C)")
    severity: Severity | None = Field(default=None, description="Advisory severity from the data source")


class ComponentUnit(FrozenModel):
    """A server in a cabinet."""
    id: str = Field(description="Server identifier, unique within its cabinet")
    name: str = Field(description="Display name")
    sensor_points: tuple[SensorPoint, ...] = Field(default=(), description="Temperature probes")
    severity: Severity | None = Field(default=None, description="Advisory severity from the data source")

    @field_validator("sensor_points")
    @classmethod
    def _unique_sensor_ids(cls, value: tuple[SensorPoint, ...]) -> tuple[SensorPoint, ...]:
        return _ensure_unique_ids(value, "sensor point")


class PowerMetrics(FrozenModel):
    """Electrical readings for a cabinet."""
    current: float = Field(strict=True, description="Current (A)")
    voltage: float = Field(strict=True, description="Voltage (V)")
    power: float = Field(strict=True, description="Power (W)")
    severity: Severity | None = None


class FlowMetrics(FrozenModel):
    """Coolant readings for one side of the loop."""
    flow_rate: float = Field(strict=True, description="Flow rate (L/min)")
    pressure: float = Field(strict=True, description="Pressure (kPa)")
    flow_speed: float = Field(strict=True, description="Flow speed (m/s)")
    temperature: float = Field(strict=True, description="Coolant temperature (°C)")
    severity: Severity | None = None


class Enclosure(FrozenModel):
    """A liquid-cooled cabinet."""
    id: str = Field(description="Cabinet identifier, unique within the fleet")
    name: str = Field(description="Display name")
    power: PowerMetrics
    input_flow: FlowMetrics
    output_flow: FlowMetrics
    cabinet_temperature: float = Field(strict=True, description="Cabinet air temperature (°C)")
    cabinet_temperature_severity: Severity | None = None
    liquid_level: float = Field(strict=True, description="Coolant level (percent)")
    liquid_level_severity: Severity | None = None
    has_leak: bool = Field(default=False, description="Leak detector tripped")
    servers: tuple[ComponentUnit, ...] = Field(default=())
    overall_severity: Severity | None = None

    @field_validator("servers")
    @classmethod
    def _unique_server_ids(cls, value: tuple[ComponentUnit, ...]) -> tuple[ComponentUnit, ...]:
        return _ensure_unique_ids(value, "server")


class FleetSnapshot(FrozenModel):
    """Every cabinet at one point in time."""
    enclosures: tuple[Enclosure, ...] = Field(default=())
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("enclosures")
    @classmethod
    def _unique_enclosure_ids(cls, value: tuple[Enclosure, ...]) -> tuple[Enclosure, ...]:
        return _ensure_unique_ids(value, "cabinet")


# Assessment (output) models


class MetricReading(FrozenModel):
    """A named value and the severity it classifies to."""
    name: str
    value: float
    severity: Severity
    unit: str = ""


class SensorAssessment(FrozenModel):
    id: str
    name: str
    reading: MetricReading

    @property
    def severity(self) -> Severity:
        return self.reading.severity


class GroupAssessment(FrozenModel):
    """A metric group (power, input flow, output flow) and its joined severity."""
    name: str
    readings: tuple[MetricReading, ...]
    severity: Severity

    def reading(self, name: str) -> MetricReading:
        """Look up a reading in the group by name."""
        for reading in self.readings:
            if reading.name == name:
                return reading
        raise KeyError(name)


class UnitAssessment(FrozenModel):
    id: str
    name: str
    sensors: tuple[SensorAssessment, ...]
    severity: Severity


class EnclosureAssessment(FrozenModel):
    """Classified cabinet with every derived severity."""
    id: str
    name: str
    power: GroupAssessment
    input_flow: GroupAssessment
    output_flow: GroupAssessment
    cabinet_temperature: MetricReading
    liquid_level: MetricReading
    has_leak: bool
    units: tuple[UnitAssessment, ...]
    units_severity: Severity
    severity: Severity

    @property
    def needs_attention(self) -> bool:
        """Critical overall, or a leak regardless of severity."""
        return self.has_leak or self.severity == Severity.CRITICAL

    @property
    def groups(self) -> tuple[GroupAssessment, ...]:
        return (self.power, self.input_flow, self.output_flow)


class ConsistencyIssue(FrozenModel):
    """An advisory severity that disagrees with the joined one."""
    path: str = Field(description="Dotted location of the entity")
    advisory: Severity
    computed: Severity

    def __str__(self) -> str:
        return (
            f"{self.path}: supplied severity {self.advisory.value} "
            f"does not match computed {self.computed.value}"
        )


def _zero_counts() -> dict[Severity, int]:
    return {level: 0 for level in Severity}


class FleetSummary(FrozenModel):
    """Fleet-wide tallies. Independent counts, not joins."""
    total_enclosures: int = 0
    total_units: int = 0
    enclosure_counts: dict[Severity, int] = Field(default_factory=_zero_counts)
    unit_counts: dict[Severity, int] = Field(default_factory=_zero_counts)
    leak_count: int = 0


class FleetAssessment(FrozenModel):
    """Result of assessing one snapshot."""
    generated_at: datetime
    enclosures: tuple[EnclosureAssessment, ...]
    summary: FleetSummary
    consistency_warnings: tuple[ConsistencyIssue, ...] = ()

    def enclosure(self, enclosure_id: str) -> EnclosureAssessment:
        """Look up an assessed cabinet by id."""
        for enclosure in self.enclosures:
            if enclosure.id == enclosure_id:
                return enclosure
        raise KeyError(enclosure_id)

    @property
    def worst_severity(self) -> Severity | None:
        """Most severe cabinet severity, or None for an empty fleet."""
        if not self.enclosures:
            return None
        return max(e.severity for e in self.enclosures)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready representation for API consumers."""
        payload = self.model_dump(mode="json")
        for enclosure, raw in zip(self.enclosures, payload["enclosures"]):
            raw["needs_attention"] = enclosure.needs_attention
        return payload
