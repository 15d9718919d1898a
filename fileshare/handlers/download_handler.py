"""ZIP download handling for ``POST {dir}/__download``."""

from fileshare.bootstrap.config import ARCHIVE_FILENAME, SECURITY_HEADERS
from fileshare.domain.archive import ArchiveBuildError, build_archive
from fileshare.domain.correlation_id import component_logger
from fileshare.domain.file_list import extract_string_array
from fileshare.domain.http_types import HttpRequest, HttpResponse
from fileshare.domain.response_builders import (
    bad_request_response,
    internal_error_response,
    streaming_response,
)
from fileshare.domain.sandbox import SandboxedPath

DOWNLOAD_LOGGER = component_logger("handlers.download")

ARCHIVE_CONTENT_TYPE = "application/zip"
ARCHIVE_CHUNK_SIZE = 256 * 1024


def download_response(request: HttpRequest, root: SandboxedPath) -> HttpResponse:
    """Build an archive of the requested selections and stream it back."""
    selections = extract_string_array(
        request.body.decode("utf-8", errors="replace"), "files"
    )
    if not selections:
        return bad_request_response(request, SECURITY_HEADERS, "No files specified")

    try:
        payload = build_archive(root, selections)
    except ArchiveBuildError as error:
        DOWNLOAD_LOGGER.error(
            "Archive creation failed",
            extra={"event": "archive_failed", "error_type": type(error).__name__},
            exc_info=True,
        )
        return internal_error_response(request, SECURITY_HEADERS, "ZIP creation failed")

    return streaming_response(
        request,
        ARCHIVE_CONTENT_TYPE,
        _chunks(payload),
        len(payload),
        SECURITY_HEADERS,
        {"Content-Disposition": f'attachment; filename="{ARCHIVE_FILENAME}"'},
    )


def _chunks(payload: bytes):
    view = memoryview(payload)
    for offset in range(0, len(view), ARCHIVE_CHUNK_SIZE):
        yield bytes(view[offset : offset + ARCHIVE_CHUNK_SIZE])
