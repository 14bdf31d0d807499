"""Loading and saving task plans as YAML.

A plan only stores how tasks are sized, never how far along they are.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable

import yaml

from .manager import ProgressManager
from .schema import validate_plan
from .task import TaskSpec

PLAN_FILE = "ptm.yaml"


def parse_plan(text: str) -> Dict[str, TaskSpec]:
    """Return the task specs described by the YAML *text*.

    Raises :class:`~ptm.schema.SchemaError` for malformed plans and
    :class:`yaml.YAMLError` for text that is not YAML at all.
    """
    data = yaml.safe_load(text)
    validate_plan(data)
    return {name: TaskSpec.from_dict(task) for name, task in data["tasks"].items()}


def dump_plan(specs: Dict[str, TaskSpec]) -> str:
    return yaml.dump({"tasks": {name: spec.to_dict() for name, spec in specs.items()}}, sort_keys=False)


def load(path: Path) -> Dict[str, TaskSpec]:
    """Return the task specs stored in ``path``."""
    with path.open("r", encoding="utf-8") as f:
        return parse_plan(f.read())


def save(specs: Dict[str, TaskSpec], path: Path) -> None:
    """Save ``specs`` to ``path`` in YAML format."""
    with path.open("w", encoding="utf-8") as f:
        f.write(dump_plan(specs))


def template(
    names: Iterable[str],
    child_units: int = 1,
    parent_units: int = 1,
) -> Dict[str, TaskSpec]:
    """Return a plan giving every task in *names* the same size."""
    spec = TaskSpec(child_units, parent_units)
    return {name: spec for name in names}


def build_manager(path: Path, strict: bool = False) -> ProgressManager[str]:
    return ProgressManager(load(path), strict=strict)


__all__ = ["PLAN_FILE", "build_manager", "dump_plan", "load", "parse_plan", "save", "template"]
