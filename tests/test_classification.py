"""Tests for leaf classification."""

import math

import pytest
from pydantic import ValidationError

from cabinetwatch.classification import classify, deviation, read_metric
from cabinetwatch.config import MetricThreshold, ThresholdConfig
from cabinetwatch.exceptions import InvalidReadingError
from cabinetwatch.models import Severity


@pytest.fixture
def probe():
    return MetricThreshold(baseline=45.0, caution=5, warning=10, critical=20, unit="°C")


@pytest.fixture
def liquid():
    return MetricThreshold(baseline=85, caution=10, warning=20, critical=35, one_sided=True)


@pytest.mark.parametrize(
    "value,expected",
    [
        (45.0, Severity.NORMAL),
        (49.9, Severity.NORMAL),
        (50.0, Severity.CAUTION),
        (40.0, Severity.CAUTION),
        (54.0, Severity.CAUTION),
        (55.0, Severity.WARNING),
        (30.0, Severity.WARNING),
        (65.0, Severity.CRITICAL),
        (68.0, Severity.CRITICAL),
        (20.0, Severity.CRITICAL),
    ],
)
def test_two_sided_bands(probe, value, expected):
    assert classify(value, probe) == expected


def test_most_severe_band_wins(probe):
    # 23 away from baseline exceeds all three bands
    assert classify(68.0, probe) == Severity.CRITICAL


@pytest.mark.parametrize(
    "value,expected",
    [
        (95, Severity.NORMAL),
        (1000, Severity.NORMAL),
        (85, Severity.NORMAL),
        (76, Severity.NORMAL),
        (75, Severity.CAUTION),
        (60, Severity.WARNING),
        (50, Severity.CRITICAL),
        (40, Severity.CRITICAL),
    ],
)
def test_one_sided_only_counts_below_baseline(liquid, value, expected):
    assert classify(value, liquid) == expected


def test_deviation(probe, liquid):
    assert deviation(40.0, probe) == 5.0
    assert deviation(50.0, probe) == 5.0
    assert deviation(95, liquid) == 0.0
    assert deviation(80, liquid) == 5.0


def test_classification_is_monotone_in_deviation(probe, liquid):
    distances = [i * 0.5 for i in range(0, 100)]

    for direction in (1, -1):
        ranks = [classify(probe.baseline + direction * d, probe).rank for d in distances]
        assert ranks == sorted(ranks)

    ranks = [classify(liquid.baseline - d, liquid).rank for d in distances]
    assert ranks == sorted(ranks)


def test_zero_width_bands():
    threshold = MetricThreshold(baseline=0, caution=0, warning=0, critical=0)
    assert classify(0, threshold) == Severity.CRITICAL


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf, "42", None, True])
def test_non_finite_or_non_numeric_rejected(probe, value):
    with pytest.raises(InvalidReadingError) as exc_info:
        classify(value, probe, "probe")
    assert exc_info.value.name == "probe"
    assert isinstance(exc_info.value, ValueError)


def test_integers_are_accepted(probe):
    assert classify(45, probe) == Severity.NORMAL


def test_read_metric_carries_name_unit_and_severity(probe):
    reading = read_metric("probe_1", 58.5, probe)
    assert reading.name == "probe_1"
    assert reading.value == 58.5
    assert reading.unit == "°C"
    assert reading.severity == Severity.WARNING


def test_read_metric_rejects_nan(probe):
    with pytest.raises(InvalidReadingError, match="probe_1"):
        read_metric("probe_1", float("nan"), probe)


def test_bands_must_be_ordered():
    with pytest.raises(ValidationError):
        MetricThreshold(baseline=10, caution=5, warning=3, critical=20)
    with pytest.raises(ValidationError):
        MetricThreshold(baseline=10, caution=-1, warning=3, critical=20)


def _default(path):
    group, _, name = path.partition(".")
    return getattr(getattr(ThresholdConfig(), group), name)


@pytest.mark.parametrize(
    "path,value,expected",
    [
        ("power.voltage", 220.1, Severity.CAUTION),
        ("power.voltage", 219.9, Severity.CAUTION),
        ("power.voltage", 220.09, Severity.NORMAL),
        ("power.voltage", 220.2, Severity.WARNING),
        ("power.voltage", 220.4, Severity.CRITICAL),
        ("input_flow.flow_speed", 2.3, Severity.CAUTION),
        ("input_flow.flow_speed", 1.3, Severity.CAUTION),
        ("input_flow.flow_speed", 2.29, Severity.NORMAL),
        ("input_flow.flow_speed", 2.8, Severity.WARNING),
        ("input_flow.temperature", 26.5, Severity.CAUTION),
        ("input_flow.temperature", 28.0, Severity.WARNING),
        ("input_flow.temperature", 27.99, Severity.CAUTION),
        ("input_flow.temperature", 31.0, Severity.CRITICAL),
    ],
)
def test_default_band_edges_belong_to_the_band(path, value, expected):
    assert classify(value, _default(path)) == expected
