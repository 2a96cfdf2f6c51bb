"""Leaf classification of raw readings against deviation bands."""

import math
from numbers import Real
from typing import Any

from .config import MetricThreshold
from .exceptions import InvalidReadingError
from .models import MetricReading, Severity


def deviation(value: float, threshold: MetricThreshold) -> float:
    """Distance of a value from the threshold baseline.

    One-sided metrics only count distance below the baseline; anything at or
    above it has zero deviation.
    """
    if threshold.one_sided:
        return max(threshold.baseline - value, 0.0)
    return abs(value - threshold.baseline)


def reaches(distance: float, width: float) -> bool:
    """True if a deviation is at or beyond a band width.

    A deviation within float rounding of the width counts as on the edge, so
    220.1 V against 220 +/- 0.1 is in the band even though the subtraction
    comes out a hair short.
    """
    return distance >= width or math.isclose(distance, width, rel_tol=1e-9, abs_tol=1e-12)


def classify(value: Any, threshold: MetricThreshold, name: str = "reading") -> Severity:
    """Classify a raw value against a metric threshold.

    Bands are checked from caution up to critical and the most severe band
    the deviation reaches wins.

    Args:
        value: Raw reading.
        threshold: Baseline and band widths for the metric.
        name: Metric name, used in error messages.

    Returns:
        Severity for the reading.

    Raises:
        InvalidReadingError: If the value is not a finite number.
    """
    if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
        raise InvalidReadingError(name, value)

    distance = deviation(float(value), threshold)

    severity = Severity.NORMAL
    for level, width in (
        (Severity.CAUTION, threshold.caution),
        (Severity.WARNING, threshold.warning),
        (Severity.CRITICAL, threshold.critical),
    ):
        if reaches(distance, width):
            severity = level

    return severity


def read_metric(name: str, value: Any, threshold: MetricThreshold) -> MetricReading:
    """Classify a value and wrap it as a MetricReading."""
    severity = classify(value, threshold, name)
    return MetricReading(name=name, value=value, severity=severity, unit=threshold.unit)
