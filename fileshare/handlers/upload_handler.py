"""Multipart upload handling for ``POST {dir}/__upload``."""

import time

from fileshare.bootstrap.config import SECURITY_HEADERS, UPLOAD_SUFFIX
from fileshare.domain.correlation_id import component_logger
from fileshare.domain.http_types import HttpRequest, HttpResponse
from fileshare.domain.multipart import (
    UploadedPart,
    extract_boundary,
    parse_multipart,
    sanitize_filename,
)
from fileshare.domain.response_builders import bad_request_response, text_response
from fileshare.domain.sandbox import SandboxError, SandboxedPath, resolve_sandbox_path

UPLOAD_LOGGER = component_logger("handlers.upload")


def _directory_path(request_path: str) -> str:
    directory = request_path[: -len(UPLOAD_SUFFIX)]
    return directory or "/"


def _write_part(directory: SandboxedPath, part: UploadedPart) -> bool:
    """Persist one part; any failure is logged and reported as False."""
    safe_name = sanitize_filename(part.filename)
    if safe_name is None:
        UPLOAD_LOGGER.warning(
            "Upload part has no usable filename",
            extra={"event": "upload_part_skipped", "path": part.filename},
        )
        return False
    try:
        destination = directory.child(safe_name)
        with open(destination.path, "wb") as file_handle:
            file_handle.write(part.payload)
    except (SandboxError, OSError) as error:
        UPLOAD_LOGGER.warning(
            "Upload part could not be written",
            extra={
                "event": "upload_part_skipped",
                "path": safe_name,
                "error_type": type(error).__name__,
            },
        )
        return False
    UPLOAD_LOGGER.info(
        "Upload part written",
        extra={
            "event": "upload_part_written",
            "path": destination.relative(),
            "bytes_in": len(part.payload),
        },
    )
    return True


def upload_response(request: HttpRequest, root: SandboxedPath) -> HttpResponse:
    """Store every file part of a multipart body in the addressed directory."""
    try:
        directory = resolve_sandbox_path(root, _directory_path(request.path))
    except SandboxError:
        return bad_request_response(request, SECURITY_HEADERS, "Invalid path")
    if not directory.is_dir():
        return bad_request_response(request, SECURITY_HEADERS, "Not a directory")

    boundary = extract_boundary(request.headers.get("content-type", ""))
    if boundary is None:
        return bad_request_response(request, SECURITY_HEADERS, "Missing boundary")

    parts = parse_multipart(request.body, boundary)
    if not parts:
        return bad_request_response(request, SECURITY_HEADERS, "No file in upload")

    started = time.monotonic()
    written = sum(_write_part(directory, part) for part in parts)
    UPLOAD_LOGGER.info(
        "Upload complete",
        extra={
            "event": "upload_complete",
            "path": directory.relative() or "/",
            "parts": written,
            "bytes_in": len(request.body),
            "duration_ms": int((time.monotonic() - started) * 1000),
        },
    )
    return text_response(200, "OK", request, SECURITY_HEADERS)
