"""Progress nodes and the weighted roll-up between them.

A :class:`ProgressNode` is a ``(completed, total)`` counter pair. A node
created with a ``parent`` becomes one of that parent's children and
contributes ``parent_weight`` units to it:

- the parent's ``fraction_completed`` is the weighted mean of its children's
  fractions, so it moves continuously as any child makes progress;
- the parent's ``completed_unit_count`` only grows by a child's full
  ``parent_weight`` once that child is finished.

Counts are never clamped. A child that overshoots its total reports a
fraction above ``1.0``; :func:`progress_bar` and :func:`render_tree` clamp
for display only.
"""

from __future__ import annotations

import logging
import weakref
from enum import Enum
from typing import Callable, Hashable, List, Mapping, Optional, Union

from .userinfo import UserInfo

logger = logging.getLogger(__name__)

BAR_WIDTH = 20


class NodeProperty(str, Enum):
    """Observable numeric properties of a node."""

    FRACTION_COMPLETED = "fraction_completed"
    TOTAL_UNIT_COUNT = "total_unit_count"
    COMPLETED_UNIT_COUNT = "completed_unit_count"


NodeObserver = Callable[['ProgressNode', NodeProperty, Union[int, float]], None]


def fraction_completed(completed: int, total: int) -> float:
    """Return ``completed / total``, or ``1.0`` for an empty total."""
    if total == 0:
        return 1.0
    return completed / total


class ProgressNode:
    """A single progress tracker: either an aggregate root or a leaf child."""

    def __init__(
        self,
        total_unit_count: int = 0,
        *,
        parent: Optional['ProgressNode'] = None,
        parent_weight: int = 0,
    ) -> None:
        self._completed = 0
        self._total = total_unit_count
        self._parent_weight = parent_weight if parent is not None else 0
        self._parent_ref = None
        self._children: List[ProgressNode] = []
        self._sealed = False
        self._observers: List[NodeObserver] = []
        self.user_info = UserInfo()
        if parent is not None:
            if parent.parent is not None:
                raise ValueError("progress trees are limited to a root and its direct children")
            if parent._sealed:
                raise ValueError("the set of tasks is fixed once the tree is built")
            # The tree owns every node, children only point back weakly.
            self._parent_ref = weakref.ref(parent)
            parent._children.append(self)

    def __repr__(self) -> str:
        return (
            f"ProgressNode(completed_unit_count={self._completed}, "
            f"total_unit_count={self._total}, parent_weight={self._parent_weight})"
        )

    @property
    def parent(self) -> Optional['ProgressNode']:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def parent_weight(self) -> int:
        return self._parent_weight

    @property
    def children(self) -> List['ProgressNode']:
        return list(self._children)

    @property
    def completed_unit_count(self) -> int:
        return self._completed

    @completed_unit_count.setter
    def completed_unit_count(self, value: int) -> None:
        self.set_completed(value)

    @property
    def total_unit_count(self) -> int:
        return self._total

    @total_unit_count.setter
    def total_unit_count(self, value: int) -> None:
        self.set_total(value)

    @property
    def fraction_completed(self) -> float:
        if not self._children:
            return fraction_completed(self._completed, self._total)
        if self._total == 0:
            return 1.0
        weighted = sum(c.parent_weight * c.fraction_completed for c in self._children)
        return weighted / self._total

    @property
    def is_finished(self) -> bool:
        return self.fraction_completed >= 1.0

    def set_completed(self, value: int) -> None:
        """Overwrite the completed count and recompute the parent."""
        self._require_leaf("completed")
        previous = self._completed
        self._completed = value
        if value != previous:
            self._emit(NodeProperty.COMPLETED_UNIT_COUNT, value)
        self._emit(NodeProperty.FRACTION_COMPLETED, self.fraction_completed)
        self._propagate()

    def set_total(self, value: int) -> None:
        """Resize the denominator; ``parent_weight`` is left untouched."""
        self._require_leaf("total")
        previous = self._total
        self._total = value
        if value != previous:
            self._emit(NodeProperty.TOTAL_UNIT_COUNT, value)
        self._emit(NodeProperty.FRACTION_COMPLETED, self.fraction_completed)
        self._propagate()

    def add_observer(self, observer: NodeObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: NodeObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def seal(self) -> None:
        """Refuse any further children."""
        self._sealed = True

    def _require_leaf(self, field: str) -> None:
        if self._children:
            raise ValueError(f"the {field} count of an aggregate node is derived from its children")

    def _propagate(self) -> None:
        parent = self.parent
        if parent is not None:
            parent._recompute()

    def _recompute(self) -> None:
        completed = sum(c.parent_weight for c in self._children if c.is_finished)
        if completed != self._completed:
            self._completed = completed
            self._emit(NodeProperty.COMPLETED_UNIT_COUNT, completed)
        self._emit(NodeProperty.FRACTION_COMPLETED, self.fraction_completed)

    def _emit(self, prop: NodeProperty, value: Union[int, float]) -> None:
        for observer in list(self._observers):
            try:
                observer(self, prop, value)
            except Exception:
                logger.exception("Progress observer %r failed", observer)


def _clamp(fraction: float) -> float:
    return max(0.0, min(1.0, fraction))


def progress_bar(fraction: float, width: int = BAR_WIDTH) -> str:
    """Return a text bar such as ``[#####-----]`` for *fraction*."""
    filled = int(round(_clamp(fraction) * width))
    return "[" + "#" * filled + "-" * (width - filled) + "]"


def format_percent(fraction: float) -> str:
    return f"{_clamp(fraction) * 100:.0f}%"


def render_tree(
    root: ProgressNode,
    children: Mapping[Hashable, ProgressNode],
    label: str = "Overall",
    width: int = BAR_WIDTH,
) -> str:
    """Render *root* and its labelled *children* as indented progress lines."""
    lines = [_render_line(label, root, width)]
    for key, node in children.items():
        lines.append("  " + _render_line(str(key), node, width))
    return "\n".join(lines)


def _render_line(label: str, node: ProgressNode, width: int) -> str:
    fraction = node.fraction_completed
    return (
        f"{label}: {format_percent(fraction)} {progress_bar(fraction, width)} "
        f"({node.completed_unit_count}/{node.total_unit_count})"
    )


__all__ = [
    "BAR_WIDTH",
    "NodeProperty",
    "ProgressNode",
    "fraction_completed",
    "format_percent",
    "progress_bar",
    "render_tree",
]
