"""Task descriptors consumed when building a progress tree."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class ChildProgressTask(Protocol):
    """Anything that can size a child task.

    ``child_units`` is the number of units the task needs to be complete.
    ``parent_units`` is how many units it counts for in the parent once
    finished. With ``child_units=6`` and ``parent_units=1`` the parent's
    fraction moves with every unit of the child, but its completed count
    only goes up by one after all six units are done.
    """

    @property
    def child_units(self) -> int: ...

    @property
    def parent_units(self) -> int: ...


def check_units(child_units: int, parent_units: int) -> None:
    """Raise ``ValueError`` unless the counts can size a child task."""
    if child_units < 1:
        raise ValueError(f"child_units must be at least 1, got {child_units}")
    if parent_units < 0:
        raise ValueError(f"parent_units must not be negative, got {parent_units}")


@dataclass(frozen=True)
class TaskSpec:
    """Plain descriptor for a single child task."""

    child_units: int = 1
    parent_units: int = 1

    def __post_init__(self) -> None:
        check_units(self.child_units, self.parent_units)

    def to_dict(self) -> dict:
        return {'child_units': self.child_units, 'parent_units': self.parent_units}

    @classmethod
    def from_dict(cls, data: dict) -> 'TaskSpec':
        return cls(
            child_units=data.get('child_units', 1),
            parent_units=data.get('parent_units', 1),
        )


__all__ = ["ChildProgressTask", "TaskSpec", "check_units"]
