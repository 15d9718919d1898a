"""GET/HEAD handling: files, index documents and directory listings."""

import logging
from pathlib import Path
from typing import Iterator

from fileshare.bootstrap.config import INDEX_DOCUMENT, SECURITY_HEADERS
from fileshare.domain.correlation_id import component_logger
from fileshare.domain.http_types import HttpRequest, HttpResponse
from fileshare.domain.listing import list_directory
from fileshare.domain.response_builders import (
    content_response,
    not_found_response,
    streaming_response,
)
from fileshare.domain.sandbox import SandboxError, SandboxedPath, resolve_sandbox_path
from fileshare.handlers.listing_page import render_listing

STATIC_LOGGER = component_logger("handlers.static")

HTML_CONTENT_TYPE = "text/html; charset=utf-8"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    "html": HTML_CONTENT_TYPE,
    "htm": HTML_CONTENT_TYPE,
    "css": "text/css; charset=utf-8",
    "js": "application/javascript; charset=utf-8",
    "mjs": "application/javascript; charset=utf-8",
    "json": "application/json; charset=utf-8",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
    "webp": "image/webp",
    "woff": "font/woff",
    "woff2": "font/woff2",
    "ttf": "font/ttf",
    "pdf": "application/pdf",
    "wasm": "application/wasm",
    "xml": "application/xml; charset=utf-8",
    "txt": "text/plain; charset=utf-8",
    "md": "text/plain; charset=utf-8",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mp3": "audio/mpeg",
    "ogg": "audio/ogg",
}


def content_type_for(path: Path) -> str:
    """Pick a media type from the fixed extension table; extensions are case-sensitive."""
    return CONTENT_TYPES.get(path.suffix[1:], DEFAULT_CONTENT_TYPE)


def stream_file(filepath: Path, chunk_size: int = 65536) -> Iterator[bytes]:
    """Yield file contents in fixed-size chunks for streaming responses."""
    with open(filepath, "rb") as file_handle:
        while True:
            chunk = file_handle.read(chunk_size)
            if not chunk:
                break
            yield chunk


def _file_response(request: HttpRequest, target: SandboxedPath) -> HttpResponse:
    try:
        size = target.path.stat().st_size
    except OSError:
        return not_found_response(request, SECURITY_HEADERS)
    if STATIC_LOGGER.logger.isEnabledFor(logging.DEBUG):
        STATIC_LOGGER.debug(
            "File read started",
            extra={"event": "file_read_started", "path": target.relative()},
        )
    return streaming_response(
        request,
        content_type_for(target.path),
        stream_file(target.path),
        size,
        SECURITY_HEADERS,
    )


def _directory_response(request: HttpRequest, directory: SandboxedPath) -> HttpResponse:
    try:
        index = directory.descend(INDEX_DOCUMENT)
    except SandboxError:
        index = None
    if index is not None and index.is_file():
        try:
            payload = index.path.read_bytes()
        except OSError:
            payload = None
        if payload is not None:
            return content_response(request, HTML_CONTENT_TYPE, payload, SECURITY_HEADERS)

    entries = list_directory(directory)
    page = render_listing(request.path, entries, at_root=directory.is_root)
    return content_response(
        request, HTML_CONTENT_TYPE, page.encode("utf-8"), SECURITY_HEADERS
    )


def static_response(request: HttpRequest, root: SandboxedPath) -> HttpResponse:
    """Serve the file, index document or listing addressed by the request path."""
    try:
        target = resolve_sandbox_path(root, request.path)
    except SandboxError as error:
        STATIC_LOGGER.info(
            "Static path not served",
            extra={
                "event": "static_not_found",
                "path": request.path,
                "error_type": type(error).__name__,
            },
        )
        return not_found_response(request, SECURITY_HEADERS)

    if target.is_dir():
        return _directory_response(request, target)
    if target.is_file():
        return _file_response(request, target)
    return not_found_response(request, SECURITY_HEADERS)
