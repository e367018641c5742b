"""Persistence helpers for saving and loading snapshots from disk."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml

from .domain import Snapshot
from .schema import SchemaError, validate_snapshot

logger = logging.getLogger(__name__)

JSON_SUFFIXES = {".json"}


def _is_json(path: Path) -> bool:
    return path.suffix.lower() in JSON_SUFFIXES


def save(snapshot: Snapshot, path: Path) -> None:
    """Save ``snapshot`` to ``path``; JSON for ``.json`` files, YAML otherwise."""
    text = snapshot.to_json() if _is_json(path) else snapshot.to_yaml()
    with path.open("w", encoding="utf-8") as f:
        f.write(text)
    logger.debug("Saved %d tasks to %s", len(snapshot.tasks), path)


def load(path: Path) -> Snapshot:
    """Return a validated :class:`Snapshot` loaded from ``path``.

    Raises ``FileNotFoundError`` if the file is missing and
    :class:`SchemaError` if it cannot be parsed or fails validation.
    """
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            text = f.read()
        data = json.loads(text) if _is_json(path) else yaml.safe_load(text)
    except (UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise SchemaError(f"could not parse {path.name}: {e}") from e
    validate_snapshot(data if data is not None else {})
    snapshot = Snapshot.from_dict(data or {})
    logger.debug("Loaded %d tasks and %d stages from %s", len(snapshot.tasks), len(snapshot.stages), path)
    return snapshot

__all__ = ["save", "load"]
