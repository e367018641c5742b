from __future__ import annotations

from typing import Any, Dict


class SchemaError(ValueError):
    """Raised when a snapshot payload does not conform to the expected schema."""


_OPTIONAL_STRINGS = ("name", "status", "level_type")


def validate_task(task: Any) -> None:
    """Validate a task dict.

    Expected keys:
    - id: required
    - component_path: optional string (empty or missing paths are allowed)
    - status, name, level_type: optional strings
    - assignees: optional list

    Unknown status values are accepted; they simply carry no progress.
    """
    if not isinstance(task, dict):
        raise SchemaError("task must be a mapping")

    if task.get("id") is None:
        raise SchemaError("task must have an 'id'")

    path = task.get("component_path")
    if path is not None and not isinstance(path, str):
        raise SchemaError(f"task {task['id']}: 'component_path' must be a string")

    for key in _OPTIONAL_STRINGS:
        if task.get(key) is not None and not isinstance(task[key], str):
            raise SchemaError(f"task {task['id']}: '{key}' must be a string")

    if task.get("assignees") is not None and not isinstance(task["assignees"], list):
        raise SchemaError(f"task {task['id']}: 'assignees' must be a list")


def validate_stage(stage: Any) -> None:
    """Validate a stage dict with a required ``id`` and ``name``."""
    if not isinstance(stage, dict):
        raise SchemaError("stage must be a mapping")
    if stage.get("id") is None:
        raise SchemaError("stage must have an 'id'")
    if not isinstance(stage.get("name"), str):
        raise SchemaError(f"stage {stage['id']}: 'name' must be a string")
    order = stage.get("order_index")
    if order is not None and (isinstance(order, bool) or not isinstance(order, int)):
        raise SchemaError(f"stage {stage['id']}: 'order_index' must be an integer")
    weight = stage.get("weight")
    if weight is not None and (isinstance(weight, bool) or not isinstance(weight, (int, float))):
        raise SchemaError(f"stage {stage['id']}: 'weight' must be a number")


def validate_snapshot(data: Dict[str, Any]) -> None:
    """Validate the root mapping holding ``project``, ``stages`` and ``tasks``."""
    if not isinstance(data, dict):
        raise SchemaError("root must be a mapping")

    project = data.get("project")
    if project is not None:
        if not isinstance(project, dict):
            raise SchemaError("'project' must be a mapping")
        if project.get("id") is None:
            raise SchemaError("project must have an 'id'")

    for key, validate in (("stages", validate_stage), ("tasks", validate_task)):
        items = data.get(key)
        if items is None:
            continue
        if not isinstance(items, list):
            raise SchemaError(f"'{key}' must be a list")
        for item in items:
            validate(item)
