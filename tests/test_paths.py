import os
from pathlib import Path

import pytest

from codespace_agent.errors import InvalidPath
from codespace_agent.sandbox.paths import PathSandbox


def test_resolves_relative_path_under_root(sandbox: PathSandbox, root: Path) -> None:
    assert sandbox.resolve("src/app.js") == root / "src" / "app.js"


def test_dot_resolves_to_root(sandbox: PathSandbox, root: Path) -> None:
    assert sandbox.resolve(".") == root
    assert sandbox.relative(root) == "."


@pytest.mark.parametrize(
    "candidate",
    ["../../etc/passwd", "..", "src/../../outside", "/etc/passwd", "a/b/../../../x"],
)
def test_rejects_escapes(sandbox: PathSandbox, candidate: str) -> None:
    with pytest.raises(InvalidPath):
        sandbox.resolve(candidate)


@pytest.mark.parametrize("candidate", ["", None])
def test_rejects_missing_path(sandbox: PathSandbox, candidate) -> None:
    with pytest.raises(InvalidPath, match="required"):
        sandbox.resolve(candidate)


def test_rejects_nul_byte(sandbox: PathSandbox) -> None:
    with pytest.raises(InvalidPath):
        sandbox.resolve("a\x00b")


def test_sibling_with_common_prefix_is_outside(tmp_path: Path, root: Path, sandbox: PathSandbox) -> None:
    sibling = Path(f"{root}-evil")
    sibling.mkdir()
    with pytest.raises(InvalidPath):
        sandbox.resolve(str(sibling / "x"))


def test_absolute_path_inside_root_is_allowed(sandbox: PathSandbox, root: Path) -> None:
    assert sandbox.resolve(str(root / "notes.txt")) == root / "notes.txt"


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_symlink_escape_is_rejected(tmp_path: Path, root: Path, sandbox: PathSandbox) -> None:
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "secret.txt").write_text("top secret")
    (root / "link").symlink_to(outside, target_is_directory=True)

    with pytest.raises(InvalidPath):
        sandbox.resolve("link/secret.txt")


def test_symlink_inside_root_is_followed(root: Path, sandbox: PathSandbox) -> None:
    (root / "real").mkdir()
    (root / "alias").symlink_to(root / "real", target_is_directory=True)

    assert sandbox.resolve("alias/file.txt") == root / "real" / "file.txt"


def test_root_must_exist(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        PathSandbox(tmp_path / "missing")


def test_resolution_is_inside_root_or_fails(sandbox: PathSandbox, root: Path) -> None:
    candidates = ["a", "a/../b", "../a", "./././c", "/", "x/../../..", "d/./e/../f", "~"]
    for candidate in candidates:
        try:
            resolved = sandbox.resolve(candidate)
        except InvalidPath:
            continue
        assert resolved == root or root in resolved.parents


def test_resolve_entry_keeps_final_symlink(tmp_path: Path, root: Path, sandbox: PathSandbox) -> None:
    outside = tmp_path / "outside"
    outside.mkdir()
    (root / "escape").symlink_to(outside, target_is_directory=True)

    assert sandbox.resolve_entry("escape") == root / "escape"
    assert sandbox.resolve_entry("sub/../escape") == root / "escape"
    assert sandbox.resolve_entry(".") == root
    with pytest.raises(InvalidPath):
        sandbox.resolve_entry("escape/inner")
    with pytest.raises(InvalidPath):
        sandbox.resolve_entry("..")
