"""Loading and validating raw fleet snapshots."""

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import SnapshotValidationError
from .models import FleetSnapshot


def load_snapshot(data: Any) -> FleetSnapshot:
    """Validate raw data against the fleet schema.

    Args:
        data: Parsed JSON/YAML document, or an existing FleetSnapshot.

    Returns:
        Validated snapshot.

    Raises:
        SnapshotValidationError: If the data does not match the schema.
    """
    if isinstance(data, FleetSnapshot):
        return data

    try:
        return FleetSnapshot.model_validate(data)
    except ValidationError as e:
        raise SnapshotValidationError(
            f"Invalid snapshot: {e.error_count()} error(s)",
            errors=e.errors(include_url=False, include_context=False, include_input=False),
        ) from e


def read_snapshot_file(path: str | Path) -> FleetSnapshot:
    """Read a snapshot from a JSON or YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        SnapshotValidationError: If the content is not a valid snapshot.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            try:
                raw = json.load(f)
            except json.JSONDecodeError as e:
                raise SnapshotValidationError(f"Invalid JSON in {path}: {e}") from e
        else:
            try:
                raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise SnapshotValidationError(f"Invalid YAML in {path}: {e}") from e

    return load_snapshot(raw)
