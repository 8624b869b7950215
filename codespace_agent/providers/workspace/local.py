"""Local workspace provider implementation."""

from __future__ import annotations

import logging
import os
from pathlib import Path
import shutil
from typing import Any, Iterable, Sequence

from codespace_agent.errors import (
    AgentError,
    BadRequest,
    Conflict,
    Forbidden,
    InvalidPath,
    NotFound,
    PayloadTooLarge,
)
from codespace_agent.models.files import (
    BatchItemResult,
    FileContent,
    FileEntry,
    FileStats,
    SearchHit,
)
from codespace_agent.providers.workspace.base import WorkspaceProvider
from codespace_agent.providers.workspace.ignore import IgnoreRules
from codespace_agent.sandbox.paths import PathSandbox

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_SEARCH_DEPTH = 5


class LocalWorkspace(WorkspaceProvider):
    def __init__(
        self,
        sandbox: PathSandbox,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        allowed_extensions: Iterable[str] | None = None,
    ) -> None:
        self._sandbox = sandbox
        self._max_file_size = max_file_size
        self._allowed_extensions = self._normalize_extensions(allowed_extensions)

    @property
    def root(self) -> Path:
        return self._sandbox.root

    @property
    def allowed_extensions(self) -> list[str] | None:
        if self._allowed_extensions is None:
            return None
        return sorted(self._allowed_extensions)

    def read_file(self, path: str) -> FileContent:
        target = self._sandbox.resolve(path)
        stats = self._stat_or_raise(target, path, "File not found")
        if stats.is_directory:
            raise Conflict("Path is a directory, not a file", details={"path": path})
        if stats.size > self._max_file_size:
            raise PayloadTooLarge(
                f"File too large (max {self._max_file_size} bytes)",
                details={"path": path, "size": stats.size, "maxSize": self._max_file_size},
            )
        # Line endings are returned exactly as stored.
        content = target.read_bytes().decode("utf-8", errors="replace")
        return FileContent(path=path, content=content, stats=stats)

    def write_file(self, path: str, content: str, create_dirs: bool = True) -> FileStats:
        target = self._sandbox.resolve(path)
        self._check_extension(target, path)
        if target.is_dir():
            raise Conflict("Path is a directory, not a file", details={"path": path})
        if create_dirs:
            target.parent.mkdir(parents=True, exist_ok=True)
        elif not target.parent.is_dir():
            raise NotFound("Parent directory not found", details={"path": path})
        target.write_text(content, encoding="utf-8", newline="")
        return FileStats.from_stat_result(target.stat())

    def update_file(self, path: str, content: str) -> FileStats:
        target = self._sandbox.resolve(path)
        stats = self._stat_or_raise(target, path, "File not found")
        if stats.is_directory:
            raise Conflict("Path is a directory, not a file", details={"path": path})
        self._check_extension(target, path)
        target.write_text(content, encoding="utf-8", newline="")
        return FileStats.from_stat_result(target.stat())

    def delete(self, path: str, recursive: bool = False) -> None:
        target = self._sandbox.resolve_entry(path)
        if self._sandbox.is_root(target):
            raise InvalidPath("Refusing to delete the working directory", details={"path": path})
        if not os.path.lexists(target):
            raise NotFound("File not found", details={"path": path})
        if target.is_dir() and not target.is_symlink():
            if recursive:
                shutil.rmtree(target)
            elif any(target.iterdir()):
                raise Conflict(
                    "Directory is not empty; pass recursive=true to delete it",
                    details={"path": path},
                )
            else:
                target.rmdir()
        else:
            target.unlink()

    def mkdirs(self, path: str, recursive: bool = True) -> None:
        target = self._sandbox.resolve(path)
        try:
            target.mkdir(parents=recursive, exist_ok=recursive)
        except FileExistsError as exc:
            raise Conflict("Path already exists", details={"path": path}) from exc
        except FileNotFoundError as exc:
            raise NotFound("Parent directory not found", details={"path": path}) from exc

    def stat(self, path: str) -> FileStats:
        target = self._sandbox.resolve(path)
        return self._stat_or_raise(target, path, "Path not found")

    def list_files(
        self,
        path: str = ".",
        recursive: bool = False,
        with_content: bool = False,
        detailed: bool = False,
    ) -> Sequence[FileEntry]:
        target = self._sandbox.resolve(path or ".")
        stats = self._stat_or_raise(target, path, "Directory not found")
        if not stats.is_directory:
            raise Conflict("Path is not a directory", details={"path": path})
        # .gitignore is re-read per listing so edits made through the agent apply
        rules = IgnoreRules(self._sandbox.root)
        return self._list(target, rules, recursive, with_content, detailed)

    def _list(
        self,
        directory: Path,
        rules: IgnoreRules,
        recursive: bool,
        with_content: bool,
        detailed: bool,
    ) -> list[FileEntry]:
        entries: list[FileEntry] = []
        for entry in sorted(directory.iterdir(), key=lambda item: item.name):
            relative = self._sandbox.relative(directory / entry.name)
            is_dir = entry.is_dir()
            if rules.ignores(relative, is_dir=is_dir):
                continue
            size = mod_time = None
            if detailed:
                try:
                    stat_info = entry.stat()
                    size, mod_time = stat_info.st_size, stat_info.st_mtime
                except OSError:
                    logger.debug("stat failed for %s", entry, exc_info=True)
            children = None
            if recursive and is_dir and not entry.is_symlink():
                children = self._list(entry, rules, recursive, with_content, detailed)
            content = content_error = None
            if with_content and entry.is_file():
                try:
                    content = self.read_file(relative).content
                except AgentError as exc:
                    content_error = exc.message
                except OSError as exc:
                    content_error = str(exc)
            entries.append(
                FileEntry(
                    name=entry.name,
                    is_dir=is_dir,
                    path=relative,
                    size=size,
                    mod_time=mod_time,
                    children=children,
                    content=content,
                    content_error=content_error,
                )
            )
        return entries

    def search(
        self, query: str, path: str = ".", max_depth: int = DEFAULT_SEARCH_DEPTH
    ) -> Sequence[SearchHit]:
        if not query:
            raise BadRequest("Query is required")
        start = self._sandbox.resolve(path or ".")
        stats = self._stat_or_raise(start, path, "Directory not found")
        if not stats.is_directory:
            raise Conflict("Path is not a directory", details={"path": path})
        needle = query.lower()
        hits: list[SearchHit] = []
        self._search(start, needle, max_depth, 0, hits)
        return hits

    def _search(
        self, directory: Path, needle: str, max_depth: int, depth: int, hits: list[SearchHit]
    ) -> None:
        if depth > max_depth:
            return
        try:
            with os.scandir(directory) as iterator:
                entries = sorted(iterator, key=lambda item: item.name)
        except OSError:
            logger.debug("Skipping unreadable directory %s", directory)
            return
        for entry in entries:
            is_dir = entry.is_dir(follow_symlinks=False)
            if needle in entry.name.lower():
                hits.append(
                    SearchHit(
                        name=entry.name,
                        path=self._sandbox.relative(Path(entry.path)),
                        is_dir=is_dir,
                    )
                )
            if is_dir and not entry.name.startswith("."):
                self._search(Path(entry.path), needle, max_depth, depth + 1, hits)

    def copy(self, source: str, destination: str) -> None:
        src = self._sandbox.resolve(source)
        dst = self._sandbox.resolve(destination)
        if not src.exists():
            raise NotFound("Source not found", details={"path": source})
        if src.is_dir():
            if dst == src or src in dst.parents:
                raise Conflict("Cannot copy a directory into itself", details={"path": destination})
            shutil.copytree(src, dst, symlinks=True, dirs_exist_ok=True)
        else:
            self._check_extension(dst, destination)
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dst)

    def move(self, source: str, destination: str) -> None:
        src = self._sandbox.resolve_entry(source)
        dst = self._sandbox.resolve(destination)
        if self._sandbox.is_root(src):
            raise InvalidPath("Refusing to move the working directory", details={"path": source})
        if not os.path.lexists(src):
            raise NotFound("Source not found", details={"path": source})
        is_link = src.is_symlink()
        if not is_link and src.is_dir() and src in dst.parents:
            raise Conflict("Cannot move a directory into itself", details={"path": destination})
        if src.is_file():
            self._check_extension(dst, destination)
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(src), str(dst))

    def read_many(self, paths: Sequence[Any]) -> Sequence[BatchItemResult]:
        results: list[BatchItemResult] = []
        for path in paths:
            try:
                if not isinstance(path, str):
                    raise InvalidPath("Path must be a string")
                file = self.read_file(path)
                results.append(
                    BatchItemResult(
                        path=path,
                        success=True,
                        data={"content": file.content, "stats": file.stats.to_dict()},
                    )
                )
            except (AgentError, OSError) as exc:
                results.append(BatchItemResult(path=path, success=False, error=_describe(exc)))
        return results

    def create_many(self, files: Sequence[dict[str, Any]]) -> Sequence[BatchItemResult]:
        results: list[BatchItemResult] = []
        for item in files:
            path = item.get("path") if isinstance(item, dict) else None
            try:
                if not isinstance(path, str) or not path:
                    raise InvalidPath("path is required")
                content = item.get("content") or ""
                if not isinstance(content, str):
                    raise BadRequest("content must be a string", details={"path": path})
                stats = self.write_file(path, content, create_dirs=True)
                results.append(
                    BatchItemResult(path=path, success=True, data={"stats": stats.to_dict()})
                )
            except (AgentError, OSError) as exc:
                results.append(BatchItemResult(path=path, success=False, error=_describe(exc)))
        return results

    def _stat_or_raise(self, target: Path, path: str, message: str) -> FileStats:
        try:
            return FileStats.from_stat_result(target.stat())
        except FileNotFoundError as exc:
            raise NotFound(message, details={"path": path}) from exc

    def _check_extension(self, target: Path, path: str) -> None:
        if self._allowed_extensions is None:
            return
        if target.suffix.lower() not in self._allowed_extensions:
            raise Forbidden(
                "File extension not allowed",
                details={"path": path, "allowed": self.allowed_extensions},
            )

    @staticmethod
    def _normalize_extensions(extensions: Iterable[str] | None) -> frozenset[str] | None:
        if extensions is None:
            return None
        normalized = set()
        for ext in extensions:
            ext = ext.strip().lower()
            if not ext:
                continue
            normalized.add(ext if ext.startswith(".") else f".{ext}")
        return frozenset(normalized)


def _describe(exc: Exception) -> str:
    if isinstance(exc, AgentError):
        return exc.message
    return f"{type(exc).__name__}: {exc}"
