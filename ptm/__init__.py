"""Progress Tree Manager core package."""

from .progress import NodeProperty, ProgressNode, progress_bar, render_tree
from .task import ChildProgressTask, TaskSpec
from .manager import NoSuchTaskError, ProgressManager, ProgressSnapshot
from .observe import ROOT, ProgressNotifier, Subscription, SubscriptionClosed
from .userinfo import FileOperationKind, UserInfoKey

__all__ = [
    "NodeProperty",
    "ProgressNode",
    "progress_bar",
    "render_tree",
    "ChildProgressTask",
    "TaskSpec",
    "NoSuchTaskError",
    "ProgressManager",
    "ProgressSnapshot",
    "ROOT",
    "ProgressNotifier",
    "Subscription",
    "SubscriptionClosed",
    "FileOperationKind",
    "UserInfoKey",
]
