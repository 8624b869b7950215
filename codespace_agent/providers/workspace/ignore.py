"""Listing filter built from the workspace ``.gitignore``."""

from __future__ import annotations

import logging
from pathlib import Path

import pathspec

logger = logging.getLogger(__name__)

# Agent infrastructure directories, hidden from listings whatever .gitignore says.
EXCLUDED_DIRS = frozenset({".devcontainer", ".codespace-agent"})


class IgnoreRules:
    def __init__(self, root: Path) -> None:
        self._spec = self._load(root / ".gitignore")

    @staticmethod
    def _load(gitignore: Path) -> pathspec.GitIgnoreSpec:
        try:
            lines = gitignore.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            lines = []
        except OSError as exc:
            logger.warning("Could not read %s: %s", gitignore, exc)
            lines = []
        lines.extend(f"{name}/" for name in sorted(EXCLUDED_DIRS))
        return pathspec.GitIgnoreSpec.from_lines(lines)

    def ignores(self, relative_path: str, is_dir: bool = False) -> bool:
        if any(part in EXCLUDED_DIRS for part in Path(relative_path).parts):
            return True
        candidate = f"{relative_path}/" if is_dir else relative_path
        return self._spec.match_file(candidate)
