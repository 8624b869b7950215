"""Data models for workspace file operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import os
import stat as stat_module
from typing import Any, Optional


def _isoformat(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


@dataclass(frozen=True)
class FileStats:
    size: int
    is_directory: bool
    is_file: bool
    modified: float
    created: float
    permissions: int

    @classmethod
    def from_stat_result(cls, result: os.stat_result) -> "FileStats":
        created = getattr(result, "st_birthtime", result.st_ctime)
        return cls(
            size=result.st_size,
            is_directory=stat_module.S_ISDIR(result.st_mode),
            is_file=stat_module.S_ISREG(result.st_mode),
            modified=result.st_mtime,
            created=created,
            permissions=result.st_mode,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "isDirectory": self.is_directory,
            "isFile": self.is_file,
            "modified": _isoformat(self.modified),
            "created": _isoformat(self.created),
            "permissions": self.permissions,
        }


@dataclass(frozen=True)
class FileEntry:
    name: str
    is_dir: bool
    path: str
    size: Optional[int] = None
    mod_time: Optional[float] = None
    children: Optional[list["FileEntry"]] = None
    content: Optional[str] = None
    content_error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "type": "directory" if self.is_dir else "file",
            "path": self.path,
        }
        if self.size is not None:
            data["size"] = self.size
        if self.mod_time is not None:
            data["modified"] = _isoformat(self.mod_time)
        if self.children is not None:
            data["children"] = [child.to_dict() for child in self.children]
        if self.content is not None or self.content_error is not None:
            data["content"] = self.content
        if self.content_error is not None:
            data["contentError"] = self.content_error
        return data


@dataclass(frozen=True)
class FileContent:
    path: str
    content: str
    stats: FileStats

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "content": self.content, "stats": self.stats.to_dict()}


@dataclass(frozen=True)
class SearchHit:
    name: str
    path: str
    is_dir: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "type": "directory" if self.is_dir else "file",
        }


@dataclass(frozen=True)
class BatchItemResult:
    """Outcome of one item in a batch read or create."""

    path: Any
    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"path": self.path, "success": self.success}
        result.update(self.data)
        if self.error is not None:
            result["error"] = self.error
        return result
