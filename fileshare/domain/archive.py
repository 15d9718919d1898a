"""On-demand ZIP archives of sandboxed files and directory trees."""

import io
import zipfile
from typing import Iterable

from fileshare.domain.correlation_id import component_logger
from fileshare.domain.sandbox import SandboxError, SandboxedPath, resolve_sandbox_path

ARCHIVE_LOGGER = component_logger("domain.archive")


class ArchiveBuildError(Exception):
    """Raised when the archive as a whole cannot be produced."""


def _add_file(archive: zipfile.ZipFile, source: SandboxedPath, entry_name: str) -> bool:
    # The entry is only started once the whole file has been read.
    try:
        info = zipfile.ZipInfo.from_file(source.path, entry_name)
        with open(source.path, "rb") as handle:
            contents = handle.read()
    except OSError as error:
        ARCHIVE_LOGGER.warning(
            "Archive entry unreadable, skipping",
            extra={
                "event": "archive_entry_skipped",
                "path": source.relative(),
                "error_type": type(error).__name__,
            },
        )
        return False
    info.compress_type = zipfile.ZIP_DEFLATED
    archive.writestr(info, contents)
    return True


def _add_tree(archive: zipfile.ZipFile, top: SandboxedPath, prefix: str) -> int:
    """Walk ``top`` with an explicit work-list, adding every visible file."""
    added = 0
    visited = {top.path}
    pending: list[tuple[SandboxedPath, str]] = [(top, prefix)]
    while pending:
        directory, directory_prefix = pending.pop()
        try:
            names = sorted(entry.name for entry in directory.path.iterdir())
        except OSError as error:
            ARCHIVE_LOGGER.warning(
                "Archive directory unreadable, skipping",
                extra={
                    "event": "archive_entry_skipped",
                    "path": directory.relative(),
                    "error_type": type(error).__name__,
                },
            )
            continue
        for name in names:
            if name.startswith("."):
                continue
            try:
                entry = directory.descend(name)
            except SandboxError:
                ARCHIVE_LOGGER.warning(
                    "Archive entry left the sandbox, skipping",
                    extra={"event": "archive_entry_skipped", "path": name},
                )
                continue
            entry_name = f"{directory_prefix}/{name}" if directory_prefix else name
            if entry.is_file():
                added += _add_file(archive, entry, entry_name)
            elif entry.is_dir() and entry.path not in visited:
                visited.add(entry.path)
                pending.append((entry, entry_name))
    return added


def build_archive(root: SandboxedPath, selections: Iterable[str]) -> bytes:
    """Return a DEFLATE-compressed ZIP of every selection that resolves.

    Selections that fail to resolve are skipped; only a failure of the
    archive codec itself raises :class:`ArchiveBuildError`.
    """
    buffer = io.BytesIO()
    added = 0
    try:
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for selection in selections:
                try:
                    resolved = resolve_sandbox_path(root, selection)
                except SandboxError as error:
                    ARCHIVE_LOGGER.info(
                        "Archive selection rejected",
                        extra={
                            "event": "archive_selection_skipped",
                            "path": selection,
                            "error_type": type(error).__name__,
                        },
                    )
                    continue
                if resolved.is_file():
                    added += _add_file(archive, resolved, resolved.name)
                elif resolved.is_dir():
                    added += _add_tree(archive, resolved, resolved.name)
    except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as error:
        raise ArchiveBuildError(str(error)) from error

    payload = buffer.getvalue()
    ARCHIVE_LOGGER.info(
        "Archive built",
        extra={"event": "archive_built", "entries": added, "bytes_out": len(payload)},
    )
    return payload
