"""Unit tests for ZIP archive construction."""

import io
import logging
import os
import zipfile

from fileshare.domain.archive import build_archive


def _names(payload: bytes) -> list[str]:
    with zipfile.ZipFile(io.BytesIO(payload)) as archive:
        return sorted(archive.namelist())


def test_file_and_directory_selection(root):
    """A file plus a directory with two files gives three entries."""
    (root.path / "a.txt").write_text("A")
    (root.path / "dir").mkdir()
    (root.path / "dir" / "b.txt").write_text("B")
    (root.path / "dir" / "c.txt").write_text("C")

    payload = build_archive(root, ["/a.txt", "/dir"])

    assert _names(payload) == ["a.txt", "dir/b.txt", "dir/c.txt"]
    with zipfile.ZipFile(io.BytesIO(payload)) as archive:
        assert archive.read("dir/c.txt") == b"C"
        assert archive.getinfo("a.txt").compress_type == zipfile.ZIP_DEFLATED


def test_nested_selection_uses_base_name(root):
    """Entry names start at the selected item's own name."""
    (root.path / "x" / "y").mkdir(parents=True)
    (root.path / "x" / "y" / "deep.txt").write_text("d")

    payload = build_archive(root, ["/x/y/deep.txt", "/x/y"])

    assert _names(payload) == ["deep.txt", "y/deep.txt"]


def test_root_selection_uses_root_directory_name(root):
    """Selecting the root archives it under the root directory's name."""
    (root.path / "top.txt").write_text("t")

    payload = build_archive(root, ["/"])

    assert _names(payload) == [f"{root.name}/top.txt"]


def test_percent_encoded_selection(root):
    """Selections arrive as listing hrefs and are percent-decoded."""
    (root.path / "report 1.txt").write_text("r")

    payload = build_archive(root, ["/report%201.txt"])

    assert _names(payload) == ["report 1.txt"]


def test_escaping_and_missing_selections_are_skipped(root, caplog):
    """Selections that fail to resolve are dropped and logged."""
    caplog.set_level(logging.INFO, logger="fileshare")
    (root.path / "ok.txt").write_text("ok")

    payload = build_archive(root, ["/../../etc/passwd", "/missing.txt", "/ok.txt"])

    assert _names(payload) == ["ok.txt"]
    skipped = [
        r for r in caplog.records if getattr(r, "event", None) == "archive_selection_skipped"
    ]
    assert len(skipped) == 2


def test_no_resolvable_selection_yields_valid_empty_archive(root):
    """An archive with no entries is still a well-formed ZIP."""
    payload = build_archive(root, ["/missing"])

    assert _names(payload) == []


def test_hidden_entries_and_escaping_links_are_not_archived(root, tmp_path):
    """Walking a tree skips dotfiles and symlinks that leave the root."""
    outside = tmp_path / "outside.txt"
    outside.write_text("secret")
    (root.path / "tree").mkdir()
    (root.path / "tree" / ".hidden").write_text("h")
    (root.path / "tree" / "shown.txt").write_text("s")
    os.symlink(outside, root.path / "tree" / "leak.txt")

    payload = build_archive(root, ["/tree"])

    assert _names(payload) == ["tree/shown.txt"]


def test_symlink_cycle_is_walked_once(root):
    """A link back to an ancestor does not loop forever."""
    (root.path / "loop").mkdir()
    (root.path / "loop" / "f.txt").write_text("f")
    os.symlink(root.path / "loop", root.path / "loop" / "again")

    payload = build_archive(root, ["/loop"])

    assert _names(payload) == ["loop/f.txt"]


def test_archive_built_event_logged(root, caplog):
    """The summary event reports the entry count."""
    caplog.set_level(logging.INFO, logger="fileshare")
    (root.path / "one.txt").write_text("1")

    build_archive(root, ["/one.txt"])

    record = next(r for r in caplog.records if getattr(r, "event", None) == "archive_built")
    assert record.entries == 1


def test_overlong_selection_is_skipped(root):
    """A selection the filesystem cannot even look up does not fail the archive."""
    (root.path / "a.txt").write_text("A")

    payload = build_archive(root, ["/" + "b" * 300, "/a.txt"])

    assert _names(payload) == ["a.txt"]


def test_unreadable_file_is_skipped(root, caplog, monkeypatch):
    """A file that fails to stat is logged and left out; the rest still archive."""
    caplog.set_level(logging.WARNING, logger="fileshare")
    (root.path / "good.txt").write_text("g")
    (root.path / "bad.txt").write_text("b")
    original_from_file = zipfile.ZipInfo.from_file

    def _failing_from_file(filename, *args, **kwargs):
        if str(filename).endswith("bad.txt"):
            raise PermissionError(13, "Permission denied")
        return original_from_file(filename, *args, **kwargs)

    monkeypatch.setattr(zipfile.ZipInfo, "from_file", staticmethod(_failing_from_file))

    payload = build_archive(root, ["/good.txt", "/bad.txt"])

    assert _names(payload) == ["good.txt"]
    skipped = [
        r for r in caplog.records if getattr(r, "event", None) == "archive_entry_skipped"
    ]
    assert [r.path for r in skipped] == ["bad.txt"]


def test_read_failure_leaves_no_partial_entry(root, monkeypatch):
    """A read error mid-file drops that entry entirely."""
    (root.path / "good.txt").write_text("g")
    (root.path / "bad.txt").write_text("b")
    real_open = open

    class _BrokenReader:
        def __init__(self, handle):
            self._handle = handle

        def __enter__(self):
            return self

        def __exit__(self, *exc_info):
            self._handle.close()

        def read(self, *_args):
            raise OSError(5, "Input/output error")

    def _open(file, mode="r", *args, **kwargs):
        handle = real_open(file, mode, *args, **kwargs)
        if str(file).endswith("bad.txt"):
            return _BrokenReader(handle)
        return handle

    monkeypatch.setattr("builtins.open", _open)

    payload = build_archive(root, ["/bad.txt", "/good.txt"])

    assert _names(payload) == ["good.txt"]
