"""Hierarchical severity aggregation over a fleet snapshot."""

import logging
import warnings
from collections.abc import Iterable, Sequence

from .classification import read_metric
from .config import Config, FlowThresholds, PowerThresholds, ThresholdConfig
from .exceptions import ConsistencyWarning, EmptyAggregationError
from .models import (
    ComponentUnit,
    ConsistencyIssue,
    Enclosure,
    EnclosureAssessment,
    FleetAssessment,
    FleetSnapshot,
    FleetSummary,
    FlowMetrics,
    GroupAssessment,
    MetricReading,
    PowerMetrics,
    SensorAssessment,
    Severity,
    UnitAssessment,
)
from .severity import join_all

logger = logging.getLogger(__name__)

FLOW_FIELDS = ("flow_rate", "pressure", "flow_speed", "temperature")
POWER_FIELDS = ("current", "voltage", "power")


def _check_advisory(
    path: str,
    advisory: Severity | None,
    computed: Severity,
    issues: list[ConsistencyIssue] | None,
) -> None:
    """Record a mismatch between a supplied severity and the computed one."""
    if advisory is None or advisory == computed:
        return

    issue = ConsistencyIssue(path=path, advisory=advisory, computed=computed)
    logger.warning("Severity mismatch at %s", issue)
    warnings.warn(ConsistencyWarning(issue), stacklevel=3)
    if issues is not None:
        issues.append(issue)


def assess_group(
    name: str,
    readings: Iterable[MetricReading],
    advisory: Severity | None = None,
    path: str | None = None,
    issues: list[ConsistencyIssue] | None = None,
) -> GroupAssessment:
    """Join the severities of a metric group.

    Raises:
        EmptyAggregationError: If the group has no readings.
    """
    readings = tuple(readings)
    severity = join_all((r.severity for r in readings), f"readings in group {name}")
    _check_advisory(path or name, advisory, severity, issues)
    return GroupAssessment(name=name, readings=readings, severity=severity)


def assess_power(
    power: PowerMetrics,
    thresholds: PowerThresholds,
    path: str = "power",
    issues: list[ConsistencyIssue] | None = None,
) -> GroupAssessment:
    """Classify and join the power group of a cabinet."""
    readings = [
        read_metric(field, getattr(power, field), getattr(thresholds, field))
        for field in POWER_FIELDS
    ]
    return assess_group("power", readings, power.severity, path, issues)


def assess_flow(
    name: str,
    flow: FlowMetrics,
    thresholds: FlowThresholds,
    path: str | None = None,
    issues: list[ConsistencyIssue] | None = None,
) -> GroupAssessment:
    """Classify and join one coolant flow group."""
    readings = [
        read_metric(field, getattr(flow, field), getattr(thresholds, field))
        for field in FLOW_FIELDS
    ]
    return assess_group(name, readings, flow.severity, path or name, issues)


def assess_unit(
    unit: ComponentUnit,
    thresholds: ThresholdConfig,
    path: str | None = None,
    issues: list[ConsistencyIssue] | None = None,
) -> UnitAssessment:
    """Classify every probe on a server and join them.

    The unit severity is always the join of its probes. A severity supplied
    with the unit is only compared against it.

    Raises:
        InvalidReadingError: If a probe temperature is not finite.
        EmptyAggregationError: If the server has no probes.
    """
    path = path or unit.id
    sensors = []
    for position, point in enumerate(unit.sensor_points):
        reading = read_metric(point.name, point.temperature, thresholds.sensor_point(position))
        _check_advisory(f"{path}.{point.id}", point.severity, reading.severity, issues)
        sensors.append(SensorAssessment(id=point.id, name=point.name, reading=reading))

    severity = join_all((s.severity for s in sensors), f"sensor points on server {unit.id}")
    _check_advisory(path, unit.severity, severity, issues)

    return UnitAssessment(id=unit.id, name=unit.name, sensors=tuple(sensors), severity=severity)


def assess_enclosure(
    enclosure: Enclosure,
    thresholds: ThresholdConfig,
    issues: list[ConsistencyIssue] | None = None,
) -> EnclosureAssessment:
    """Classify a cabinet and fold every severity up to its overall status.

    Overall severity joins the power, input flow and output flow groups, the
    cabinet temperature, the liquid level and the joined server severity.
    The leak flag is reported alongside and never joined.

    Raises:
        InvalidReadingError: If any reading is not finite.
        EmptyAggregationError: If the cabinet has no servers, or a server
            has no probes.
    """
    path = enclosure.id

    power = assess_power(enclosure.power, thresholds.power, f"{path}.power", issues)
    input_flow = assess_flow(
        "input_flow", enclosure.input_flow, thresholds.input_flow, f"{path}.input_flow", issues
    )
    output_flow = assess_flow(
        "output_flow", enclosure.output_flow, thresholds.output_flow, f"{path}.output_flow", issues
    )

    cabinet_temperature = read_metric(
        "cabinet_temperature", enclosure.cabinet_temperature, thresholds.cabinet_temperature
    )
    _check_advisory(
        f"{path}.cabinet_temperature",
        enclosure.cabinet_temperature_severity,
        cabinet_temperature.severity,
        issues,
    )

    liquid_level = read_metric("liquid_level", enclosure.liquid_level, thresholds.liquid_level)
    _check_advisory(
        f"{path}.liquid_level", enclosure.liquid_level_severity, liquid_level.severity, issues
    )

    if not enclosure.servers:
        raise EmptyAggregationError(f"servers in cabinet {enclosure.id}")
    units = tuple(
        assess_unit(unit, thresholds, f"{path}.{unit.id}", issues) for unit in enclosure.servers
    )
    units_severity = join_all((u.severity for u in units), f"servers in cabinet {enclosure.id}")

    severity = join_all(
        [
            power.severity,
            input_flow.severity,
            output_flow.severity,
            cabinet_temperature.severity,
            liquid_level.severity,
            units_severity,
        ]
    )
    _check_advisory(path, enclosure.overall_severity, severity, issues)

    return EnclosureAssessment(
        id=enclosure.id,
        name=enclosure.name,
        power=power,
        input_flow=input_flow,
        output_flow=output_flow,
        cabinet_temperature=cabinet_temperature,
        liquid_level=liquid_level,
        has_leak=enclosure.has_leak,
        units=units,
        units_severity=units_severity,
        severity=severity,
    )


def summarize_fleet(enclosures: Sequence[EnclosureAssessment]) -> FleetSummary:
    """Tally cabinets and servers per severity, and count leaks.

    Args:
        enclosures: Assessed cabinets.

    Returns:
        Fleet summary. Counts are independent tallies, not joins.
    """
    enclosure_counts = {level: 0 for level in Severity}
    unit_counts = {level: 0 for level in Severity}
    total_units = 0
    leak_count = 0

    for enclosure in enclosures:
        enclosure_counts[enclosure.severity] += 1
        if enclosure.has_leak:
            leak_count += 1
        for unit in enclosure.units:
            unit_counts[unit.severity] += 1
            total_units += 1

    return FleetSummary(
        total_enclosures=len(enclosures),
        total_units=total_units,
        enclosure_counts=enclosure_counts,
        unit_counts=unit_counts,
        leak_count=leak_count,
    )


def _resolve_thresholds(config: Config | ThresholdConfig | None) -> ThresholdConfig:
    if config is None:
        return ThresholdConfig()
    if isinstance(config, Config):
        return config.thresholds
    return config


def assess_fleet(
    snapshot: FleetSnapshot,
    config: Config | ThresholdConfig | None = None,
) -> FleetAssessment:
    """Run a complete classification and aggregation pass over a snapshot.

    Any error rejects the whole snapshot; no partial assessment is returned.

    Args:
        snapshot: Fleet snapshot to assess.
        config: Configuration or threshold tables. Uses defaults if None.

    Returns:
        Complete fleet assessment.
    """
    thresholds = _resolve_thresholds(config)
    issues: list[ConsistencyIssue] = []

    enclosures = tuple(
        assess_enclosure(enclosure, thresholds, issues) for enclosure in snapshot.enclosures
    )
    summary = summarize_fleet(enclosures)

    logger.debug(
        "Assessed %d cabinets and %d servers (%d leaks, %d mismatches)",
        summary.total_enclosures,
        summary.total_units,
        summary.leak_count,
        len(issues),
    )

    return FleetAssessment(
        generated_at=snapshot.generated_at,
        enclosures=enclosures,
        summary=summary,
        consistency_warnings=tuple(issues),
    )
