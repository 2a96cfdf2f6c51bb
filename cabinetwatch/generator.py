"""Synthetic fleet snapshots for demos and development.

Each reading gets a severity first; the numeric value is then drawn from
inside that severity's band, so the engine always classifies the value back
to the same severity.
"""

import logging
import random
from datetime import datetime, timezone
from typing import Protocol

from .config import Config, GeneratorConfig, LiquidLevelLimits, MetricThreshold
from .models import (
    ComponentUnit,
    Enclosure,
    FleetSnapshot,
    FlowMetrics,
    PowerMetrics,
    SensorPoint,
    Severity,
)
from .severity import join_all

logger = logging.getLogger(__name__)

LEVELS = (Severity.NORMAL, Severity.CAUTION, Severity.WARNING, Severity.CRITICAL)

# Keep samples off band edges so float rounding cannot cross a boundary
_EDGE_MARGIN = 0.05


class SnapshotSource(Protocol):
    """Anything that can produce a fleet snapshot."""

    def snapshot(self) -> FleetSnapshot:
        ...


class StaticSource:
    """Serves the same snapshot every time."""

    def __init__(self, snapshot: FleetSnapshot):
        self._snapshot = snapshot

    def snapshot(self) -> FleetSnapshot:
        return self._snapshot


def band_limits(severity: Severity, threshold: MetricThreshold) -> tuple[float, float]:
    """Deviation range [low, high) that classifies to a severity."""
    if severity == Severity.NORMAL:
        return 0.0, threshold.caution
    if severity == Severity.CAUTION:
        return threshold.caution, threshold.warning
    if severity == Severity.WARNING:
        return threshold.warning, threshold.critical
    return threshold.critical, 2 * threshold.critical


def sample_value(
    severity: Severity,
    threshold: MetricThreshold,
    rng: random.Random,
    limits: LiquidLevelLimits | None = None,
) -> float:
    """Draw a value that classifies to the given severity.

    Args:
        severity: Target severity.
        threshold: Metric baseline and bands.
        rng: Random source.
        limits: Physical range the value must stay inside (liquid level).

    Returns:
        Raw reading.

    Raises:
        ValueError: If the band for the severity is empty.
    """
    low, high = band_limits(severity, threshold)

    if threshold.one_sided:
        if severity == Severity.NORMAL and rng.random() < 0.5:
            # Anywhere above baseline is normal for a one-sided metric
            ceiling = limits.maximum if limits else threshold.baseline + threshold.critical
            return threshold.baseline + rng.random() * max(ceiling - threshold.baseline, 0.0)
        sign = -1
    else:
        sign = 1 if rng.random() > 0.5 else -1

    if limits is not None:
        room = {
            1: limits.maximum - threshold.baseline,
            -1: threshold.baseline - limits.minimum,
        }
        # Fall back to the other side if the band does not fit on this one
        if not threshold.one_sided and min(high, room[sign]) <= low:
            sign = -sign
        high = min(high, room[sign])

    if high <= low:
        raise ValueError(
            f"No room to generate a {severity.value} value "
            f"(band {low}..{high} around baseline {threshold.baseline})"
        )

    position = _EDGE_MARGIN + (1 - 2 * _EDGE_MARGIN) * rng.random()
    distance = low + (high - low) * position
    return threshold.baseline + sign * distance


class SyntheticSource:
    """Random fleet generator.

    Args:
        config: Full configuration; thresholds shape the values and the
            generator section shapes the fleet. Uses defaults if None.
        seed: Seed for reproducible snapshots.
    """

    def __init__(self, config: Config | None = None, seed: int | None = None):
        self.config = config or Config()
        self.rng = random.Random(seed)

    @property
    def settings(self) -> GeneratorConfig:
        return self.config.generator

    def draw_severity(self) -> Severity:
        """Weighted random severity."""
        weights = [self.settings.weights.get(level.value, 0.0) for level in LEVELS]
        return self.rng.choices(LEVELS, weights=weights)[0]

    def _value(self, severity: Severity, threshold: MetricThreshold) -> float:
        return sample_value(severity, threshold, self.rng)

    def _power(self) -> PowerMetrics:
        severity = self.draw_severity()
        thresholds = self.config.thresholds.power
        return PowerMetrics(
            current=self._value(severity, thresholds.current),
            voltage=self._value(severity, thresholds.voltage),
            power=self._value(severity, thresholds.power),
            severity=severity,
        )

    def _flow(self, side: str) -> FlowMetrics:
        severity = self.draw_severity()
        thresholds = getattr(self.config.thresholds, side)
        return FlowMetrics(
            flow_rate=self._value(severity, thresholds.flow_rate),
            pressure=self._value(severity, thresholds.pressure),
            flow_speed=self._value(severity, thresholds.flow_speed),
            temperature=self._value(severity, thresholds.temperature),
            severity=severity,
        )

    def _server(self, cabinet_no: int, server_no: int) -> ComponentUnit:
        points = []
        for probe_no in range(1, self.settings.probes_per_server + 1):
            severity = self.draw_severity()
            threshold = self.config.thresholds.sensor_point(probe_no - 1)
            points.append(
                SensorPoint(
                    id=f"{cabinet_no}-{server_no}-{probe_no}",
                    name=f"Probe {probe_no}",
                    temperature=self._value(severity, threshold),
                    severity=severity,
                )
            )

        return ComponentUnit(
            id=f"S{server_no:02d}",
            name=f"Server-{cabinet_no}{server_no:02d}",
            sensor_points=tuple(points),
            severity=join_all(p.severity for p in points),
        )

    def _enclosure(self, cabinet_no: int) -> Enclosure:
        thresholds = self.config.thresholds

        power = self._power()
        input_flow = self._flow("input_flow")
        output_flow = self._flow("output_flow")

        temperature_severity = self.draw_severity()
        cabinet_temperature = self._value(temperature_severity, thresholds.cabinet_temperature)

        limits = self.settings.liquid_level
        liquid_severity = self.draw_severity()
        liquid_level = sample_value(liquid_severity, thresholds.liquid_level, self.rng, limits)

        server_count = self.rng.randint(self.settings.min_servers, self.settings.max_servers)
        servers = tuple(self._server(cabinet_no, n) for n in range(1, server_count + 1))

        overall = join_all(
            [
                power.severity,
                input_flow.severity,
                output_flow.severity,
                temperature_severity,
                liquid_severity,
                *(s.severity for s in servers),
            ]
        )

        return Enclosure(
            id=f"C{cabinet_no:02d}",
            name=f"Cabinet-{cabinet_no}",
            power=power,
            input_flow=input_flow,
            output_flow=output_flow,
            cabinet_temperature=cabinet_temperature,
            cabinet_temperature_severity=temperature_severity,
            liquid_level=liquid_level,
            liquid_level_severity=liquid_severity,
            has_leak=self.rng.random() < self.settings.leak_probability,
            servers=servers,
            overall_severity=overall,
        )

    def snapshot(self) -> FleetSnapshot:
        """Produce a new random snapshot of the whole fleet."""
        enclosures = tuple(
            self._enclosure(n) for n in range(1, self.settings.cabinets + 1)
        )
        logger.debug("Generated synthetic snapshot with %d cabinets", len(enclosures))
        return FleetSnapshot(enclosures=enclosures, generated_at=datetime.now(timezone.utc))


def generate_snapshot(config: Config | None = None, seed: int | None = None) -> FleetSnapshot:
    """Generate one synthetic snapshot."""
    return SyntheticSource(config, seed).snapshot()
