"""Resolution of client-supplied paths against the working root."""

from __future__ import annotations

import os
from pathlib import Path

from codespace_agent.errors import InvalidPath


class PathSandbox:
    """Confines every filesystem path to a single canonical root.

    Candidates are joined onto the root and canonicalized with symlinks
    followed, so ``..`` segments, absolute overrides and links pointing out
    of the tree are all caught by the same containment check.
    """

    def __init__(self, root: str | Path) -> None:
        resolved = Path(root).expanduser().resolve()
        if not resolved.is_dir():
            raise ValueError(f"Working directory does not exist: {root}")
        self._root = resolved

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, candidate: str | Path | None) -> Path:
        raw = self._validate(candidate)
        return self._resolve_inside(self._join(raw), raw)

    def resolve_entry(self, candidate: str | Path | None) -> Path:
        """Resolve ``candidate`` without following a symlink in its last component.

        Used by operations that act on a directory entry itself (delete, move
        source), so a link is removed or renamed rather than its target. Only
        the parent directory has to lie inside the root.
        """
        raw = self._validate(candidate)
        path = Path(os.path.normpath(self._join(raw)))
        if path == self._root:
            return self._root
        parent = self._resolve_inside(path.parent, raw)
        return parent / path.name

    def contains(self, resolved: Path) -> bool:
        return resolved == self._root or self._root in resolved.parents

    def relative(self, resolved: Path) -> str:
        if resolved == self._root:
            return "."
        return resolved.relative_to(self._root).as_posix()

    def is_root(self, resolved: Path) -> bool:
        return resolved == self._root

    @staticmethod
    def _validate(candidate: str | Path | None) -> str:
        if candidate is None or str(candidate) == "":
            raise InvalidPath("Path is required")
        raw = str(candidate)
        if "\x00" in raw:
            raise InvalidPath("Invalid path: contains NUL byte", details={"path": raw})
        return raw

    def _join(self, raw: str) -> Path:
        path = Path(raw)
        if not path.is_absolute():
            path = self._root / path
        return path

    def _resolve_inside(self, path: Path, raw: str) -> Path:
        try:
            resolved = path.resolve()
        except (OSError, RuntimeError) as exc:
            raise InvalidPath(f"Invalid path: {exc}", details={"path": raw}) from exc
        if not self.contains(resolved):
            raise InvalidPath(
                "Invalid path: outside working directory", details={"path": raw}
            )
        return resolved
