"""Load and validate schedule snapshots from JSON files."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Union

from .models import ScheduleSnapshot

logger = logging.getLogger(__name__)

SNAPSHOT_SECTIONS = ("config", "windows", "bookings", "commitments")

# Keys whose values are free-form and must keep their spelling
_OPAQUE_KEYS = {"notes", "title", "location"}


class DataValidationError(Exception):
    """Raised when snapshot data fails structural validation."""
    pass


def to_snake_case(name: str) -> str:
    """Convert a camelCase key to snake_case."""
    name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
    name = re.sub(r'([a-z\d])([A-Z])', r'\1_\2', name)
    return name.lower()


def convert_keys_to_snake_case(obj: Any) -> Any:
    """Recursively convert dictionary keys from camelCase to snake_case."""
    if isinstance(obj, dict):
        return {
            to_snake_case(k): v if k in _OPAQUE_KEYS else convert_keys_to_snake_case(v)
            for k, v in obj.items()
        }
    elif isinstance(obj, list):
        return [convert_keys_to_snake_case(item) for item in obj]
    else:
        return obj


def validate_snapshot_data(data: Any) -> None:
    """
    Validate the top-level structure of snapshot data.

    Field-level validation is left to the pydantic models.

    Args:
        data: Snapshot dictionary (snake_case keys)

    Raises:
        DataValidationError: If validation fails
    """
    if not isinstance(data, dict):
        raise DataValidationError(f"Snapshot must be a JSON object, got {type(data).__name__}")

    errors = []

    unknown = sorted(set(data) - set(SNAPSHOT_SECTIONS))
    for key in unknown:
        errors.append(f"Unknown section: {key}")

    for section in ("windows", "bookings", "commitments"):
        if section in data and not isinstance(data[section], list):
            errors.append(f"Section '{section}' must be a list")

    if "config" in data and not isinstance(data["config"], dict):
        errors.append("Section 'config' must be an object")

    if not data.get("windows") and not data.get("bookings"):
        errors.append("Snapshot has neither windows nor bookings")

    if errors:
        raise DataValidationError("; ".join(errors))


def snapshot_from_dict(data: dict[str, Any]) -> ScheduleSnapshot:
    """
    Build a validated snapshot from a (possibly camelCase) dictionary.

    Raises:
        DataValidationError: If the structure is wrong
        pydantic.ValidationError: If field validation fails
    """
    converted = convert_keys_to_snake_case(data)
    validate_snapshot_data(converted)
    snapshot = ScheduleSnapshot.model_validate(converted)
    logger.debug("Loaded snapshot: %s", snapshot.summary())
    return snapshot


def load_snapshot(path: Union[str, Path]) -> ScheduleSnapshot:
    """
    Load a schedule snapshot from a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        Validated ScheduleSnapshot

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the file isn't valid JSON
        DataValidationError: If the structure is wrong
        pydantic.ValidationError: If field validation fails
    """
    path = Path(path)

    with open(path) as f:
        data = json.load(f)

    return snapshot_from_dict(data)
