"""Configuration loader for CabinetWatch threshold tables."""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)


class MetricThreshold(BaseModel):
    """Baseline and deviation bands for one metric.

    Bands are absolute deviations from the baseline. A one-sided metric only
    counts deviation below the baseline.
    """
    model_config = ConfigDict(frozen=True)

    baseline: float
    caution: float = Field(ge=0)
    warning: float = Field(ge=0)
    critical: float = Field(ge=0)
    one_sided: bool = False
    unit: str = ""

    @model_validator(mode="after")
    def _bands_ordered(self) -> "MetricThreshold":
        if not self.caution <= self.warning <= self.critical:
            raise ValueError(
                f"bands must satisfy caution <= warning <= critical "
                f"(got {self.caution}, {self.warning}, {self.critical})"
            )
        return self


def _band(baseline: float, factor: float, unit: str = "", one_sided: bool = False) -> MetricThreshold:
    return MetricThreshold(
        baseline=baseline,
        caution=5 * factor,
        warning=10 * factor,
        critical=20 * factor,
        one_sided=one_sided,
        unit=unit,
    )


class PowerThresholds(BaseModel):
    """Thresholds for the power group."""
    model_config = ConfigDict(frozen=True)

    current: MetricThreshold = Field(default_factory=lambda: _band(85, 0.1, "A"))
    voltage: MetricThreshold = Field(default_factory=lambda: _band(220, 0.02, "V"))
    power: MetricThreshold = Field(default_factory=lambda: _band(18700, 0.05, "W"))


class FlowThresholds(BaseModel):
    """Thresholds for one coolant flow group."""
    model_config = ConfigDict(frozen=True)

    flow_rate: MetricThreshold
    pressure: MetricThreshold
    flow_speed: MetricThreshold
    temperature: MetricThreshold


def _input_flow() -> FlowThresholds:
    return FlowThresholds(
        flow_rate=_band(45, 0.2, "L/min"),
        pressure=_band(350, 0.1, "kPa"),
        flow_speed=_band(1.8, 0.1, "m/s"),
        temperature=_band(25, 0.3, "°C"),
    )


def _output_flow() -> FlowThresholds:
    return FlowThresholds(
        flow_rate=_band(44, 0.2, "L/min"),
        pressure=_band(280, 0.1, "kPa"),
        flow_speed=_band(1.7, 0.1, "m/s"),
        temperature=_band(35, 0.3, "°C"),
    )


def _liquid_level() -> MetricThreshold:
    return MetricThreshold(
        baseline=85, caution=10, warning=20, critical=35, one_sided=True, unit="%"
    )


def _sensor_points() -> tuple[MetricThreshold, ...]:
    return (_band(45, 0.5, "°C"), _band(42, 0.5, "°C"))


class ThresholdConfig(BaseModel):
    """Threshold tables for every metric the engine classifies."""
    model_config = ConfigDict(frozen=True)

    power: PowerThresholds = Field(default_factory=PowerThresholds)
    input_flow: FlowThresholds = Field(default_factory=_input_flow)
    output_flow: FlowThresholds = Field(default_factory=_output_flow)
    cabinet_temperature: MetricThreshold = Field(default_factory=lambda: _band(28, 0.3, "°C"))
    liquid_level: MetricThreshold = Field(default_factory=_liquid_level)
    sensor_points: tuple[MetricThreshold, ...] = Field(default_factory=_sensor_points, min_length=1)

    def sensor_point(self, position: int) -> MetricThreshold:
        """Threshold for the probe at a position; extra probes reuse the last entry."""
        return self.sensor_points[min(position, len(self.sensor_points) - 1)]


class LiquidLevelLimits(BaseModel):
    """Physical range of the liquid level sensor (percent)."""
    minimum: float = 10.0
    maximum: float = 100.0


class GeneratorConfig(BaseModel):
    """Synthetic data source settings."""
    cabinets: int = Field(default=6, ge=1)
    min_servers: int = Field(default=4, ge=1)
    max_servers: int = Field(default=8, ge=1)
    probes_per_server: int = Field(default=2, ge=1)
    leak_probability: float = Field(default=0.05, ge=0, le=1)
    weights: dict[str, float] = Field(
        default_factory=lambda: {
            "normal": 0.70,
            "caution": 0.15,
            "warning": 0.10,
            "critical": 0.05,
        }
    )
    liquid_level: LiquidLevelLimits = Field(default_factory=LiquidLevelLimits)

    @model_validator(mode="after")
    def _server_range(self) -> "GeneratorConfig":
        if self.min_servers > self.max_servers:
            raise ValueError("min_servers must not exceed max_servers")
        return self


class DashboardConfig(BaseModel):
    """Web dashboard settings."""
    refresh_seconds: int = Field(default=30, ge=1)
    title: str = "Liquid Cooling Monitor"


class Config(BaseModel):
    """Complete CabinetWatch configuration."""
    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)


def substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ${VAR} patterns with environment variables."""
    if isinstance(value, str):
        pattern = r'\$\{(\w+)\}'
        matches = re.findall(pattern, value)
        for match in matches:
            env_val = os.environ.get(match, "")
            value = value.replace(f"${{{match}}}", env_val)
        return value
    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substitute_env_vars(item) for item in value]
    return value


def load_config(path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    Args:
        path: Path to configuration file. If None, returns default config.

    Returns:
        Loaded configuration object.
    """
    if path is None:
        return Config()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r") as f:
        raw_config = yaml.safe_load(f) or {}

    raw_config = substitute_env_vars(raw_config)
    logger.debug("Loaded configuration from %s", path)

    return Config.model_validate(raw_config)


def get_default_config() -> Config:
    """Get the default configuration."""
    return Config()


def generate_example_config() -> str:
    """Generate example configuration YAML content."""
    return """# CabinetWatch Configuration
# Each metric has a baseline and absolute deviation bands.
# The most severe band the deviation reaches wins.

thresholds:
  power:
    current: {baseline: 85, caution: 0.5, warning: 1, critical: 2, unit: "A"}
    voltage: {baseline: 220, caution: 0.1, warning: 0.2, critical: 0.4, unit: "V"}
    power: {baseline: 18700, caution: 0.25, warning: 0.5, critical: 1, unit: "W"}

  input_flow:
    flow_rate: {baseline: 45, caution: 1, warning: 2, critical: 4, unit: "L/min"}
    pressure: {baseline: 350, caution: 0.5, warning: 1, critical: 2, unit: "kPa"}
    flow_speed: {baseline: 1.8, caution: 0.5, warning: 1, critical: 2, unit: "m/s"}
    temperature: {baseline: 25, caution: 1.5, warning: 3, critical: 6, unit: "°C"}

  output_flow:
    flow_rate: {baseline: 44, caution: 1, warning: 2, critical: 4, unit: "L/min"}
    pressure: {baseline: 280, caution: 0.5, warning: 1, critical: 2, unit: "kPa"}
    flow_speed: {baseline: 1.7, caution: 0.5, warning: 1, critical: 2, unit: "m/s"}
    temperature: {baseline: 35, caution: 1.5, warning: 3, critical: 6, unit: "°C"}

  cabinet_temperature: {baseline: 28, caution: 1.5, warning: 3, critical: 6, unit: "°C"}

  # Only a level below baseline is abnormal
  liquid_level:
    baseline: 85
    caution: 10
    warning: 20
    critical: 35
    one_sided: true
    unit: "%"

  # Server probes by position; extra probes reuse the last entry
  sensor_points:
    - {baseline: 45, caution: 2.5, warning: 5, critical: 10, unit: "°C"}
    - {baseline: 42, caution: 2.5, warning: 5, critical: 10, unit: "°C"}

# Synthetic data source used by `cabinetwatch demo` and the dashboard
generator:
  cabinets: 6
  min_servers: 4
  max_servers: 8
  probes_per_server: 2
  leak_probability: 0.05
  weights:
    normal: 0.70
    caution: 0.15
    warning: 0.10
    critical: 0.05

dashboard:
  refresh_seconds: 30
  title: "Liquid Cooling Monitor"
"""
