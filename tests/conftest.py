"""Shared fixtures for CabinetWatch tests."""

from datetime import datetime, timezone

import pytest

from cabinetwatch.config import Config, ThresholdConfig
from cabinetwatch.models import (
    ComponentUnit,
    Enclosure,
    FleetSnapshot,
    FlowMetrics,
    PowerMetrics,
    SensorPoint,
)

SNAPSHOT_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_server(server_id="S01", temperatures=(45.0, 42.0), **kwargs) -> ComponentUnit:
    """Server whose probes read the given temperatures."""
    points = tuple(
        SensorPoint(id=f"{server_id}-{n}", name=f"Probe {n}", temperature=t)
        for n, t in enumerate(temperatures, start=1)
    )
    return ComponentUnit(id=server_id, name=f"Server {server_id}", sensor_points=points, **kwargs)


def make_enclosure(enclosure_id="C01", servers=None, **overrides) -> Enclosure:
    """Cabinet with every reading at its default baseline (all normal)."""
    fields = {
        "id": enclosure_id,
        "name": f"Cabinet {enclosure_id}",
        "power": PowerMetrics(current=85, voltage=220, power=18700),
        "input_flow": FlowMetrics(flow_rate=45, pressure=350, flow_speed=1.8, temperature=25),
        "output_flow": FlowMetrics(flow_rate=44, pressure=280, flow_speed=1.7, temperature=35),
        "cabinet_temperature": 28.0,
        "liquid_level": 85.0,
        "has_leak": False,
        "servers": servers if servers is not None else (make_server("S01"), make_server("S02")),
    }
    fields.update(overrides)
    return Enclosure(**fields)


def snapshot_payload(enclosures=None) -> dict:
    """Raw JSON-style snapshot document."""
    enclosures = enclosures if enclosures is not None else [make_enclosure()]
    return FleetSnapshot(enclosures=tuple(enclosures), generated_at=SNAPSHOT_TIME).model_dump(
        mode="json"
    )


@pytest.fixture
def thresholds():
    return ThresholdConfig()


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def normal_enclosure():
    return make_enclosure()


@pytest.fixture
def normal_snapshot():
    return FleetSnapshot(
        enclosures=(make_enclosure("C01"), make_enclosure("C02")),
        generated_at=SNAPSHOT_TIME,
    )
