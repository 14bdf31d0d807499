"""The progress tree: one root node and a fixed set of keyed children."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import (
    Callable,
    Dict,
    Generic,
    Hashable,
    Iterable,
    Iterator,
    Mapping,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

from .progress import ProgressNode
from .task import ChildProgressTask, TaskSpec, check_units
from .userinfo import (
    FileOperationKind,
    ProgressKind,
    UserInfoKey,
    estimated_time_remaining,
)

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)

TaskSource = Union[Mapping[K, ChildProgressTask], Iterable[K]]


class NoSuchTaskError(KeyError):
    """Raised by a strict manager when a mutation names an unknown task."""


@dataclass(frozen=True)
class NodeSnapshot:
    completed_unit_count: int
    total_unit_count: int
    fraction_completed: float

    @classmethod
    def of(cls, node: ProgressNode) -> 'NodeSnapshot':
        return cls(node.completed_unit_count, node.total_unit_count, node.fraction_completed)


@dataclass(frozen=True)
class ProgressSnapshot:
    """Consistent view of the whole tree at one point in time."""

    parent: NodeSnapshot
    children: Tuple[Tuple[Hashable, NodeSnapshot], ...]

    @property
    def fraction_completed(self) -> float:
        return self.parent.fraction_completed

    def child(self, key: Hashable) -> Optional[NodeSnapshot]:
        for child_key, node in self.children:
            if child_key == key:
                return node
        return None


def _descriptors(tasks: TaskSource) -> Dict[Hashable, ChildProgressTask]:
    if isinstance(tasks, Mapping):
        descriptors = dict(tasks)
    else:
        # Self-describing keys: the key carries its own unit counts.
        descriptors = {task: task for task in tasks}
    for key, descriptor in descriptors.items():
        try:
            check_units(descriptor.child_units, descriptor.parent_units)
        except ValueError as e:
            raise ValueError(f"task {key!r}: {e}") from None
    return descriptors


class ProgressManager(Generic[K]):
    """Weighted two-level progress tree.

    ``tasks`` is either a mapping from key to descriptor or an iterable of
    keys that are descriptors themselves (for example an ``Enum`` exposing
    ``child_units`` and ``parent_units``). Descriptors are read once here
    and never consulted again.

    Mutations naming an unknown key do nothing unless ``strict`` is set, in
    which case they raise :class:`NoSuchTaskError`. All mutations run under
    one lock so the child write and the root recomputation stay paired.
    """

    def __init__(self, tasks: TaskSource, *, strict: bool = False) -> None:
        descriptors = _descriptors(tasks)
        self.strict = strict
        self._lock = threading.RLock()
        self.parent = ProgressNode(sum(d.parent_units for d in descriptors.values()))
        children: Dict[K, ProgressNode] = {
            key: ProgressNode(d.child_units, parent=self.parent, parent_weight=d.parent_units)
            for key, d in descriptors.items()
        }
        self.parent.seal()
        self.parent._recompute()
        self.child_tasks: Mapping[K, ProgressNode] = MappingProxyType(children)
        logger.debug(
            "Built progress tree with %d tasks, %d parent units",
            len(self.child_tasks),
            self.parent.total_unit_count,
        )

    @classmethod
    def from_keys(
        cls,
        keys: Iterable[K],
        child_units: Optional[Mapping[K, int]] = None,
        parent_units: Optional[Mapping[K, int]] = None,
        *,
        strict: bool = False,
    ) -> 'ProgressManager[K]':
        """Build a tree for *keys* that starts out fully complete.

        Every task defaults to one unit worth one parent unit; the optional
        mappings override either count per key. Call
        :meth:`set_child_task_total_unit_count` and :meth:`reset_all_tasks`
        once real sizes are known.
        """
        child_units = child_units or {}
        parent_units = parent_units or {}
        specs = {
            key: TaskSpec(child_units.get(key, 1), parent_units.get(key, 1))
            for key in keys
        }
        manager = cls(specs, strict=strict)
        for node in manager.child_tasks.values():
            node.set_completed(node.total_unit_count)
        return manager

    # -- lookup -------------------------------------------------------------

    def __getitem__(self, key: K) -> Optional[ProgressNode]:
        return self.child_tasks.get(key)

    def get(self, key: K) -> Optional[ProgressNode]:
        return self.child_tasks.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.child_tasks

    def __iter__(self) -> Iterator[K]:
        return iter(self.child_tasks)

    def __len__(self) -> int:
        return len(self.child_tasks)

    @property
    def fraction_completed(self) -> float:
        return self.parent.fraction_completed

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return ProgressSnapshot(
                parent=NodeSnapshot.of(self.parent),
                children=tuple(
                    (key, NodeSnapshot.of(node)) for key, node in self.child_tasks.items()
                ),
            )

    def __str__(self) -> str:
        lines = [
            f"Parent progress: {self.parent.completed_unit_count}/{self.parent.total_unit_count}"
        ]
        for key, node in self.child_tasks.items():
            lines.append(
                f"Child progress ({key}): {node.completed_unit_count}/{node.total_unit_count}"
            )
        return "\n".join(lines)

    # -- mutation -----------------------------------------------------------

    def _child(self, key: K) -> Optional[ProgressNode]:
        node = self.child_tasks.get(key)
        if node is None:
            if self.strict:
                raise NoSuchTaskError(key)
            logger.debug("Ignoring update for unknown task %r", key)
        return node

    def set_completed_unit_count(self, completed_unit_count: int, key: K) -> None:
        with self._lock:
            node = self._child(key)
            if node is not None:
                node.set_completed(completed_unit_count)

    def add_to_completed_unit_count(self, delta: int, key: K) -> None:
        with self._lock:
            node = self._child(key)
            if node is not None:
                node.set_completed(node.completed_unit_count + delta)

    def update_completed_unit_count(self, key: K, transform: Callable[[int], int]) -> None:
        """Replace the task's completed count with ``transform(current)``."""
        with self._lock:
            node = self._child(key)
            if node is not None:
                node.set_completed(transform(node.completed_unit_count))

    def reset_all_tasks(self) -> None:
        with self._lock:
            for node in self.child_tasks.values():
                node.set_completed(0)

    def set_child_task_total_unit_count(self, total_unit_count: int, key: K) -> None:
        """Resize one task; its weight in the parent stays the same."""
        with self._lock:
            node = self._child(key)
            if node is not None:
                node.set_total(total_unit_count)

    # -- metadata -----------------------------------------------------------

    @property
    def user_info(self):
        return self.parent.user_info

    @property
    def estimated_time_remaining(self) -> Optional[float]:
        """Seconds left, if a caller has provided an estimate."""
        return estimated_time_remaining(self.user_info)

    @estimated_time_remaining.setter
    def estimated_time_remaining(self, seconds: Optional[float]) -> None:
        self.user_info.set(UserInfoKey.ESTIMATED_TIME_REMAINING, seconds)

    def set_file_operation_kind(self, kind: Optional[FileOperationKind]) -> None:
        """Mark the operation as a specific kind of file work, or clear it."""
        if kind is None:
            self.user_info.set(UserInfoKey.KIND, None)
            self.user_info.set(UserInfoKey.FILE_OPERATION_KIND, None)
        else:
            self.user_info.set(UserInfoKey.KIND, ProgressKind.FILE)
            self.user_info.set(UserInfoKey.FILE_OPERATION_KIND, FileOperationKind(kind))

    def mark_file_operation(self) -> None:
        """Mark the operation as file work without naming a specific kind."""
        self.user_info.set(UserInfoKey.KIND, ProgressKind.FILE)

    def set_total_file_count(self, count: Optional[int]) -> None:
        self.user_info.set(UserInfoKey.FILE_TOTAL_COUNT, count)

    def set_file_operation_throughput(self, bytes_per_second: Optional[int]) -> None:
        self.user_info.set(UserInfoKey.THROUGHPUT, bytes_per_second)

    @property
    def primary_label_text(self) -> Optional[str]:
        return self.user_info.get(UserInfoKey.PRIMARY_LABEL)

    @primary_label_text.setter
    def primary_label_text(self, text: Optional[str]) -> None:
        self.user_info.set(UserInfoKey.PRIMARY_LABEL, text)

    @property
    def secondary_label_text(self) -> Optional[str]:
        return self.user_info.get(UserInfoKey.SECONDARY_LABEL)

    @secondary_label_text.setter
    def secondary_label_text(self, text: Optional[str]) -> None:
        self.user_info.set(UserInfoKey.SECONDARY_LABEL, text)


__all__ = [
    "NoSuchTaskError",
    "NodeSnapshot",
    "ProgressManager",
    "ProgressSnapshot",
]
