"""Filesystem sandbox: the only way to turn untrusted paths into real ones.

Every component that touches the filesystem receives a :class:`SandboxedPath`.
Instances are produced exclusively by :func:`sandbox_root`,
:func:`resolve_sandbox_path` and :meth:`SandboxedPath.child`, each of which
verifies component-wise that the canonical location is the root or one of
its descendants.
"""

import urllib.parse
from dataclasses import dataclass, field
from pathlib import Path

_CONSTRUCTION_TOKEN = object()


class SandboxError(Exception):
    """Base class for path resolution failures."""


class PathEscape(SandboxError):
    """Raised when a requested path resolves outside the sandbox root."""


class NotFound(SandboxError):
    """Raised when a requested path does not exist inside the sandbox."""


def _is_within(candidate: Path, root: Path) -> bool:
    return candidate == root or root in candidate.parents


def _exists(target: Path) -> bool:
    # ENAMETOOLONG and EACCES surface as OSError rather than False.
    try:
        return target.exists()
    except OSError:
        return False


@dataclass(frozen=True)
class SandboxedPath:
    """A canonical location verified to lie inside ``root``."""

    root: Path
    path: Path
    _token: object = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self._token is not _CONSTRUCTION_TOKEN:
            raise TypeError("SandboxedPath must be created through the resolver")

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_root(self) -> bool:
        return self.path == self.root

    def is_dir(self) -> bool:
        return self.path.is_dir()

    def is_file(self) -> bool:
        return self.path.is_file()

    def relative(self) -> str:
        """Return the ``/``-joined location relative to the root; empty for the root."""
        if self.is_root:
            return ""
        return self.path.relative_to(self.root).as_posix()

    def descend(self, name: str) -> "SandboxedPath":
        """Resolve an existing entry of this directory by its on-disk name."""
        if not name or name in {".", ".."} or "/" in name or "\x00" in name:
            raise PathEscape(name)
        try:
            target = (self.path / name).resolve()
        except (OSError, RuntimeError) as exc:
            raise NotFound(name) from exc
        if not _is_within(target, self.root):
            raise PathEscape(name)
        if not _exists(target):
            raise NotFound(name)
        return SandboxedPath(self.root, target, _CONSTRUCTION_TOKEN)

    def child(self, name: str) -> "SandboxedPath":
        """Return a write destination for a single, already sanitized name.

        The destination need not exist yet. Its parent is canonicalized again
        so a directory swapped for a symlink after resolution is still caught.
        """
        if not name or name in {".", ".."} or "/" in name or "\\" in name:
            raise PathEscape(name)
        if "\x00" in name:
            raise PathEscape(name)
        parent = self.path.resolve()
        if not _is_within(parent, self.root):
            raise PathEscape(self.path.as_posix())
        destination = parent / name
        if destination.is_symlink() and not _is_within(
            destination.resolve(), self.root
        ):
            raise PathEscape(destination.as_posix())
        return SandboxedPath(self.root, destination, _CONSTRUCTION_TOKEN)


def sandbox_root(directory: str) -> SandboxedPath:
    """Canonicalize the served directory into the root sandboxed path."""
    root = Path(directory).resolve(strict=True)
    if not root.is_dir():
        raise NotADirectoryError(directory)
    return SandboxedPath(root, root, _CONSTRUCTION_TOKEN)


def resolve_sandbox_path(root: SandboxedPath, request_path: str) -> SandboxedPath:
    """Resolve an untrusted, possibly percent-encoded path inside ``root``."""
    decoded = urllib.parse.unquote(request_path)
    if "\x00" in decoded:
        raise PathEscape(request_path)

    relative_part = decoded.lstrip("/")
    if not relative_part:
        return root

    try:
        target = (root.root / relative_part).resolve()
    except (OSError, RuntimeError) as exc:
        # RuntimeError covers symlink loops on older interpreters.
        raise NotFound(request_path) from exc

    if not _is_within(target, root.root):
        raise PathEscape(request_path)
    if not _exists(target):
        raise NotFound(request_path)
    return SandboxedPath(root.root, target, _CONSTRUCTION_TOKEN)
