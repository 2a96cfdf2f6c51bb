"""Tests for snapshot validation at the schema boundary."""

import json

import pytest
import yaml
from pydantic import ValidationError

from cabinetwatch.exceptions import SnapshotValidationError
from cabinetwatch.models import FleetSnapshot
from cabinetwatch.snapshot import load_snapshot, read_snapshot_file

from .conftest import SNAPSHOT_TIME, make_enclosure, make_server, snapshot_payload


def test_load_snapshot_from_dict():
    snapshot = load_snapshot(snapshot_payload())

    assert isinstance(snapshot, FleetSnapshot)
    assert snapshot.generated_at == SNAPSHOT_TIME
    assert snapshot.enclosures[0].servers[1].sensor_points[0].temperature == 45.0


def test_existing_snapshot_passes_through(normal_snapshot):
    assert load_snapshot(normal_snapshot) is normal_snapshot


def test_missing_field_rejected():
    payload = snapshot_payload()
    del payload["enclosures"][0]["power"]

    with pytest.raises(SnapshotValidationError) as exc_info:
        load_snapshot(payload)

    assert exc_info.value.errors
    assert exc_info.value.errors[0]["loc"][:3] == ("enclosures", 0, "power")


def test_wrong_type_rejected():
    payload = snapshot_payload()
    payload["enclosures"][0]["liquid_level"] = "full"

    with pytest.raises(SnapshotValidationError):
        load_snapshot(payload)


@pytest.mark.parametrize(
    "field,value",
    [("cabinet_temperature", True), ("liquid_level", "85"), ("liquid_level", False)],
)
def test_reading_types_are_not_coerced(field, value):
    payload = snapshot_payload()
    payload["enclosures"][0][field] = value

    with pytest.raises(SnapshotValidationError) as exc_info:
        load_snapshot(payload)

    assert exc_info.value.errors[0]["loc"] == ("enclosures", 0, field)


def test_nested_reading_types_are_not_coerced():
    payload = snapshot_payload()
    payload["enclosures"][0]["power"]["voltage"] = "220"
    payload["enclosures"][0]["servers"][0]["sensor_points"][0]["temperature"] = True

    with pytest.raises(SnapshotValidationError) as exc_info:
        load_snapshot(payload)

    assert {e["loc"][-1] for e in exc_info.value.errors} == {"voltage", "temperature"}


def test_integer_readings_are_accepted():
    payload = snapshot_payload()
    payload["enclosures"][0]["liquid_level"] = 85

    assert load_snapshot(payload).enclosures[0].liquid_level == 85


def test_unknown_severity_rejected():
    payload = snapshot_payload()
    payload["enclosures"][0]["overall_severity"] = "meltdown"

    with pytest.raises(SnapshotValidationError):
        load_snapshot(payload)


def _duplicate_cabinets():
    cabinet = make_enclosure("C01").model_dump()
    return [cabinet, cabinet]


def _duplicate_servers():
    cabinet = make_enclosure("C01").model_dump()
    cabinet["servers"] = [make_server("S01").model_dump()] * 2
    return [cabinet]


def _duplicate_sensors():
    server = make_server("S01").model_dump()
    server["sensor_points"] = [server["sensor_points"][0]] * 2
    cabinet = make_enclosure("C01").model_dump()
    cabinet["servers"] = [server]
    return [cabinet]


@pytest.mark.parametrize(
    "build,scope",
    [(_duplicate_cabinets, "cabinet"), (_duplicate_servers, "server"), (_duplicate_sensors, "sensor point")],
)
def test_duplicate_ids_rejected(build, scope):
    with pytest.raises(SnapshotValidationError, match="Invalid snapshot") as exc_info:
        load_snapshot({"enclosures": build()})
    assert f"duplicate {scope} id" in exc_info.value.errors[0]["msg"]


def test_snapshot_is_immutable(normal_snapshot):
    with pytest.raises(ValidationError):
        normal_snapshot.enclosures[0].has_leak = True
    assert isinstance(normal_snapshot.enclosures, tuple)


def test_read_json_file(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(snapshot_payload()))

    snapshot = read_snapshot_file(path)
    assert snapshot.enclosures[0].id == "C01"


def test_read_yaml_file(tmp_path):
    path = tmp_path / "snapshot.yaml"
    path.write_text(yaml.safe_dump(snapshot_payload()))

    snapshot = read_snapshot_file(path)
    assert snapshot.enclosures[0].name == "Cabinet C01"


def test_read_invalid_json(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text("{not json")

    with pytest.raises(SnapshotValidationError, match="Invalid JSON"):
        read_snapshot_file(path)


def test_read_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_snapshot_file(tmp_path / "missing.json")
