"""Directory enumeration independent of how listings are presented."""

import os
import time
from dataclasses import dataclass
from typing import Optional

from fileshare.domain.correlation_id import component_logger
from fileshare.domain.sandbox import SandboxedPath

LISTING_LOGGER = component_logger("domain.listing")

KIND_DIRECTORY = "directory"
KIND_FILE = "file"


@dataclass(frozen=True)
class DirectoryEntry:
    """One visible entry of a directory listing."""

    name: str
    kind: str
    size: int
    age_seconds: int

    @property
    def is_dir(self) -> bool:
        return self.kind == KIND_DIRECTORY


def _sort_key(entry: DirectoryEntry) -> tuple[int, str, str]:
    return (0 if entry.is_dir else 1, entry.name.lower(), entry.name)


def _describe(dir_entry: os.DirEntry, now: float) -> DirectoryEntry:
    try:
        is_dir = dir_entry.is_dir()
    except OSError:
        is_dir = False
    try:
        stat_result = dir_entry.stat()
    except OSError:
        return DirectoryEntry(
            dir_entry.name, KIND_DIRECTORY if is_dir else KIND_FILE, 0, 0
        )
    age = max(0, int(now - stat_result.st_mtime))
    size = 0 if is_dir else stat_result.st_size
    return DirectoryEntry(
        dir_entry.name, KIND_DIRECTORY if is_dir else KIND_FILE, size, age
    )


def list_directory(
    directory: SandboxedPath, now: Optional[float] = None
) -> list[DirectoryEntry]:
    """Return visible entries, directories first, then by case-insensitive name.

    Metadata that cannot be read degrades to zero size and age; a directory
    that cannot be opened yields an empty listing.
    """
    current_time = time.time() if now is None else now
    entries: list[DirectoryEntry] = []
    try:
        with os.scandir(directory.path) as iterator:
            for dir_entry in iterator:
                if dir_entry.name.startswith("."):
                    continue
                entries.append(_describe(dir_entry, current_time))
    except OSError as error:
        LISTING_LOGGER.warning(
            "Directory could not be listed",
            extra={
                "event": "listing_failed",
                "path": directory.relative(),
                "error_type": type(error).__name__,
            },
        )
        return []
    entries.sort(key=_sort_key)
    return entries


def format_size(size: int) -> str:
    """Render a byte count as B, KB, MB or GB with one decimal."""
    kilo = 1024
    mega = kilo * 1024
    giga = mega * 1024
    if size >= giga:
        return f"{size / giga:.1f} GB"
    if size >= mega:
        return f"{size / mega:.1f} MB"
    if size >= kilo:
        return f"{size / kilo:.1f} KB"
    return f"{size} B"


def format_age(seconds: int) -> str:
    """Render an age in the coarsest whole unit, e.g. ``3h ago``."""
    days = seconds // 86400
    if days >= 365:
        return f"{days // 365}y ago"
    if days >= 30:
        return f"{days // 30}mo ago"
    if days:
        return f"{days}d ago"
    hours = seconds // 3600
    if hours:
        return f"{hours}h ago"
    minutes = seconds // 60
    if minutes:
        return f"{minutes}m ago"
    return f"{seconds}s ago"
