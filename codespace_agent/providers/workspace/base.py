"""Workspace provider interface."""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from codespace_agent.models.files import (
    BatchItemResult,
    FileContent,
    FileEntry,
    FileStats,
    SearchHit,
)


class WorkspaceProvider(Protocol):
    def read_file(self, path: str) -> FileContent:
        ...

    def write_file(self, path: str, content: str, create_dirs: bool = True) -> FileStats:
        ...

    def update_file(self, path: str, content: str) -> FileStats:
        ...

    def delete(self, path: str, recursive: bool = False) -> None:
        ...

    def mkdirs(self, path: str, recursive: bool = True) -> None:
        ...

    def stat(self, path: str) -> FileStats:
        ...

    def list_files(
        self,
        path: str = ".",
        recursive: bool = False,
        with_content: bool = False,
        detailed: bool = False,
    ) -> Sequence[FileEntry]:
        ...

    def search(self, query: str, path: str = ".", max_depth: int = 5) -> Sequence[SearchHit]:
        ...

    def copy(self, source: str, destination: str) -> None:
        ...

    def move(self, source: str, destination: str) -> None:
        ...

    def read_many(self, paths: Sequence[Any]) -> Sequence[BatchItemResult]:
        ...

    def create_many(self, files: Sequence[dict[str, Any]]) -> Sequence[BatchItemResult]:
        ...
