from __future__ import annotations

from typing import Any, Dict


class SchemaError(ValueError):
    """Raised when a task plan does not conform to the expected schema."""


def validate_task(name: str, task: Any) -> None:
    """Validate a single task descriptor.

    Expected keys:
    - child_units: optional int, at least 1
    - parent_units: optional int, at least 0
    """
    if not isinstance(task, dict):
        raise SchemaError(f"task '{name}' must be a mapping")

    unknown = set(task) - {"child_units", "parent_units"}
    if unknown:
        raise SchemaError(f"task '{name}' has unknown keys: {', '.join(sorted(unknown))}")

    if "child_units" in task:
        units = task["child_units"]
        if not isinstance(units, int) or isinstance(units, bool):
            raise SchemaError(f"'child_units' of '{name}' must be an integer")
        if units < 1:
            raise SchemaError(f"'child_units' of '{name}' must be at least 1")

    if "parent_units" in task:
        units = task["parent_units"]
        if not isinstance(units, int) or isinstance(units, bool):
            raise SchemaError(f"'parent_units' of '{name}' must be an integer")
        if units < 0:
            raise SchemaError(f"'parent_units' of '{name}' must not be negative")


def validate_plan(data: Dict[str, Any]) -> None:
    """Validate a plan: a mapping with a ``tasks`` mapping of name to task."""
    if not isinstance(data, dict):
        raise SchemaError("plan must be a mapping")
    tasks = data.get("tasks")
    if not isinstance(tasks, dict):
        raise SchemaError("plan must have a 'tasks' mapping")
    for key, val in tasks.items():
        if not isinstance(key, str):
            raise SchemaError("task names must be strings")
        validate_task(key, val)
