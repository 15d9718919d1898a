"""Minimal multipart/form-data decoding for browser file uploads.

The decoder works on a fully buffered body and never raises on structure it
does not recognise: anything malformed simply contributes no parts.
"""

import re
from dataclasses import dataclass
from typing import Optional

HEADER_SEPARATOR = b"\r\n\r\n"
LINE_END = b"\r\n"
FILENAME_MARKER = 'filename="'
SAFE_FILENAME_PUNCTUATION = ".-_ "
FILLER_CHAR = "_"


@dataclass
class UploadedPart:
    """A file part extracted from an upload body."""

    filename: str
    payload: bytes


def extract_boundary(content_type: str) -> Optional[str]:
    """Return the boundary parameter of a multipart/form-data content type."""
    if "multipart/form-data" not in content_type.lower():
        return None
    _, marker, remainder = content_type.partition("boundary=")
    if not marker:
        return None
    boundary = remainder.split(";", 1)[0].strip().strip('"')
    return boundary or None


def _extract_filename(header_block: bytes) -> Optional[str]:
    headers = header_block.decode("utf-8", errors="replace")
    for line in headers.split("\r\n"):
        if "content-disposition" not in line.lower():
            continue
        start = line.find(FILENAME_MARKER)
        if start == -1:
            continue
        start += len(FILENAME_MARKER)
        end = line.find('"', start)
        if end == -1:
            continue
        name = line[start:end]
        # Older browsers on Windows send the full client-side path.
        return re.split(r"[/\\]", name)[-1]
    return None


def _delimiter_offsets(body: bytes, delimiter: bytes) -> list[int]:
    offsets = []
    index = body.find(delimiter)
    while index != -1:
        offsets.append(index)
        index = body.find(delimiter, index + len(delimiter))
    return offsets


def parse_multipart(body: bytes, boundary: str) -> list[UploadedPart]:
    """Split ``body`` on ``--boundary`` and return the parts carrying a filename."""
    if not boundary:
        return []
    delimiter = b"--" + boundary.encode("utf-8", errors="replace")
    offsets = _delimiter_offsets(body, delimiter)

    parts: list[UploadedPart] = []
    for position, offset in enumerate(offsets):
        start = offset + len(delimiter)
        end = offsets[position + 1] if position + 1 < len(offsets) else len(body)
        if start >= end:
            continue
        chunk = body[start:end]
        if chunk.startswith(LINE_END):
            chunk = chunk[len(LINE_END) :]
        if chunk.startswith(b"--"):
            continue
        header_block, separator, payload = chunk.partition(HEADER_SEPARATOR)
        if not separator:
            continue
        if payload.endswith(LINE_END):
            payload = payload[: -len(LINE_END)]
        filename = _extract_filename(header_block)
        if filename:
            parts.append(UploadedPart(filename, payload))
    return parts


def sanitize_filename(filename: str) -> Optional[str]:
    """Replace unsafe characters; return None when nothing usable remains."""
    safe = "".join(
        char if char.isalnum() or char in SAFE_FILENAME_PUNCTUATION else FILLER_CHAR
        for char in filename
    )
    if safe in {"", ".", ".."}:
        return None
    return safe
