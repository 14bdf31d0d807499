"""Typed metadata attached to the root of a progress tree.

The values are stored and handed back untouched. Display adapters decide
what to do with them (time-remaining labels, file counts, throughput).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterator, Optional


class ProgressKind(str, Enum):
    FILE = "file"


class FileOperationKind(str, Enum):
    """Specific kinds of file-related work."""

    DOWNLOADING = "downloading"
    DECOMPRESSING_AFTER_DOWNLOADING = "decompressingAfterDownloading"
    RECEIVING = "receiving"
    COPYING = "copying"
    UPLOADING = "uploading"
    DUPLICATING = "duplicating"


class UserInfoKey(str, Enum):
    ESTIMATED_TIME_REMAINING = "estimatedTimeRemaining"
    FILE_OPERATION_KIND = "fileOperationKind"
    FILE_TOTAL_COUNT = "fileTotalCount"
    THROUGHPUT = "throughput"
    KIND = "kind"
    PRIMARY_LABEL = "localizedDescription"
    SECONDARY_LABEL = "localizedAdditionalDescription"


_VALUE_TYPES: Dict[UserInfoKey, tuple] = {
    UserInfoKey.ESTIMATED_TIME_REMAINING: (int, float),
    UserInfoKey.FILE_OPERATION_KIND: (FileOperationKind,),
    UserInfoKey.FILE_TOTAL_COUNT: (int,),
    UserInfoKey.THROUGHPUT: (int,),
    UserInfoKey.KIND: (ProgressKind,),
    UserInfoKey.PRIMARY_LABEL: (str,),
    UserInfoKey.SECONDARY_LABEL: (str,),
}


class UserInfo:
    """Mapping of :class:`UserInfoKey` to values of a fixed type per key.

    Setting a key to ``None`` removes it.
    """

    def __init__(self) -> None:
        self._values: Dict[UserInfoKey, Any] = {}

    def set(self, key: UserInfoKey, value: Any) -> None:
        key = UserInfoKey(key)
        if value is None:
            self._values.pop(key, None)
            return
        expected = _VALUE_TYPES[key]
        # bool is an int subclass but never a meaningful count
        if isinstance(value, bool) or not isinstance(value, expected):
            names = ", ".join(t.__name__ for t in expected)
            raise TypeError(f"{key.name} expects {names}, got {type(value).__name__}")
        self._values[key] = value

    def get(self, key: UserInfoKey, default: Any = None) -> Any:
        return self._values.get(UserInfoKey(key), default)

    def __getitem__(self, key: UserInfoKey) -> Any:
        return self._values[UserInfoKey(key)]

    def __setitem__(self, key: UserInfoKey, value: Any) -> None:
        self.set(key, value)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[UserInfoKey]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def to_dict(self) -> Dict[str, Any]:
        return {key.value: value for key, value in self._values.items()}


def estimated_time_remaining(info: UserInfo) -> Optional[float]:
    value = info.get(UserInfoKey.ESTIMATED_TIME_REMAINING)
    return float(value) if value is not None else None


__all__ = [
    "FileOperationKind",
    "ProgressKind",
    "UserInfo",
    "UserInfoKey",
    "estimated_time_remaining",
]
