"""Unit tests for sandboxed path resolution."""

import os
from pathlib import Path

import pytest

from fileshare.domain.sandbox import (
    NotFound,
    PathEscape,
    SandboxedPath,
    resolve_sandbox_path,
    sandbox_root,
)


def test_empty_and_slash_resolve_to_root(root):
    """Both an empty path and a bare slash address the root itself."""
    assert resolve_sandbox_path(root, "/").is_root
    assert resolve_sandbox_path(root, "").is_root
    assert resolve_sandbox_path(root, "/").relative() == ""


def test_nested_file_resolves_inside_root(root):
    """A normal relative path resolves to the matching file."""
    (root.path / "docs").mkdir()
    (root.path / "docs" / "readme.txt").write_text("hi")

    resolved = resolve_sandbox_path(root, "/docs/readme.txt")

    assert resolved.path == root.path / "docs" / "readme.txt"
    assert resolved.relative() == "docs/readme.txt"
    assert resolved.is_file()


def test_percent_encoded_names_are_decoded(root):
    """Percent-escapes are decoded before resolution."""
    (root.path / "report 1.txt").write_text("x")

    resolved = resolve_sandbox_path(root, "/report%201.txt")

    assert resolved.name == "report 1.txt"


@pytest.mark.parametrize(
    "request_path",
    ["/../etc/passwd", "/%2e%2e/%2e%2e/etc/passwd", "/a/../../outside", "/..%2fsecret"],
)
def test_traversal_is_rejected(root, request_path):
    """Dot-dot segments that climb above the root raise PathEscape."""
    (root.path / "a").mkdir()
    with pytest.raises(PathEscape):
        resolve_sandbox_path(root, request_path)


def test_escape_is_reported_before_existence(root):
    """An escaping path is PathEscape even when the target does not exist."""
    with pytest.raises(PathEscape):
        resolve_sandbox_path(root, "/../definitely-missing-file")


def test_missing_entry_raises_not_found(root):
    """Paths inside the root that do not exist raise NotFound."""
    with pytest.raises(NotFound):
        resolve_sandbox_path(root, "/nope.txt")


def test_nul_byte_is_rejected(root):
    """Encoded NUL bytes never reach the filesystem."""
    with pytest.raises(PathEscape):
        resolve_sandbox_path(root, "/a%00b")


def test_symlink_pointing_outside_is_rejected(root, tmp_path):
    """A symlink inside the root whose target lies outside is an escape."""
    outside = tmp_path / "outside.txt"
    outside.write_text("secret")
    os.symlink(outside, root.path / "link.txt")

    with pytest.raises(PathEscape):
        resolve_sandbox_path(root, "/link.txt")


def test_symlink_pointing_inside_is_followed(root):
    """Symlinks that stay inside the root are served."""
    (root.path / "real.txt").write_text("ok")
    os.symlink(root.path / "real.txt", root.path / "alias.txt")

    resolved = resolve_sandbox_path(root, "/alias.txt")

    assert resolved.path == root.path / "real.txt"


def test_sibling_with_common_prefix_is_not_inside(tmp_path):
    """Containment is component-wise, not a string prefix check."""
    (tmp_path / "shared").mkdir()
    (tmp_path / "shared-evil").mkdir()
    (tmp_path / "shared-evil" / "x.txt").write_text("x")
    root = sandbox_root((tmp_path / "shared").as_posix())

    with pytest.raises(PathEscape):
        resolve_sandbox_path(root, "/../shared-evil/x.txt")


def test_sandbox_root_requires_directory(tmp_path):
    """The served root must be an existing directory."""
    file_path = tmp_path / "file.txt"
    file_path.write_text("x")
    with pytest.raises(NotADirectoryError):
        sandbox_root(file_path.as_posix())
    with pytest.raises(FileNotFoundError):
        sandbox_root((tmp_path / "missing").as_posix())


def test_sandboxed_path_cannot_be_built_directly(tmp_path):
    """Only the resolver may mint sandboxed paths."""
    with pytest.raises(TypeError):
        SandboxedPath(Path(tmp_path), Path(tmp_path))


def test_child_returns_destination_for_new_file(root):
    """child() accepts names that do not exist yet."""
    destination = root.child("new.txt")

    assert destination.path == root.path / "new.txt"
    assert not destination.path.exists()


@pytest.mark.parametrize("name", ["", ".", "..", "a/b", "a\\b", "nul\x00"])
def test_child_rejects_unsafe_names(root, name):
    """child() only accepts a single plain path component."""
    with pytest.raises(PathEscape):
        root.child(name)


def test_child_rejects_symlink_destination_outside(root, tmp_path):
    """Writing through an existing symlink that leaves the root is refused."""
    outside = tmp_path / "victim.txt"
    outside.write_text("original")
    os.symlink(outside, root.path / "trap.txt")

    with pytest.raises(PathEscape):
        root.child("trap.txt")


def test_descend_rejects_escaping_entry(root, tmp_path):
    """descend() re-validates each entry against the root."""
    outside_dir = tmp_path / "elsewhere"
    outside_dir.mkdir()
    os.symlink(outside_dir, root.path / "jump")

    with pytest.raises(PathEscape):
        root.descend("jump")
    with pytest.raises(NotFound):
        root.descend("absent")


def test_overlong_component_raises_not_found(root):
    """A component longer than the filesystem allows is simply not found."""
    with pytest.raises(NotFound):
        resolve_sandbox_path(root, "/" + "a" * 300)
    with pytest.raises(NotFound):
        resolve_sandbox_path(root, "/" + "a" * 300 + "/inner.txt")
    with pytest.raises(NotFound):
        root.descend("b" * 300)


def test_unreadable_entry_raises_not_found(root, monkeypatch):
    """Permission errors while probing existence map to NotFound."""
    original_exists = Path.exists

    def _guarded_exists(self, *args, **kwargs):
        if self.name == "locked":
            raise PermissionError(13, "Permission denied")
        return original_exists(self, *args, **kwargs)

    monkeypatch.setattr(Path, "exists", _guarded_exists)

    with pytest.raises(NotFound):
        resolve_sandbox_path(root, "/locked")
