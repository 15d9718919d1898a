"""HTTP/1.1 wire parsing and serialization over a connected socket."""

import socket
from typing import Optional, Tuple

from fileshare.bootstrap.config import HEADER_DELIMITER, MAX_HEADER_BYTES, MAX_UPLOAD_BYTES
from fileshare.domain.correlation_id import component_logger, get_correlation_id
from fileshare.domain.http_types import HttpRequest, HttpResponse
from fileshare.pipeline.validation import RequestEntityTooLarge

IO_LOGGER = component_logger("pipeline.io")

RECV_SIZE = 64 * 1024


def parse_headers(lines: list[str]) -> dict[str, str]:
    """Convert raw header lines into a lowercase-keyed dictionary."""
    parsed = {}
    for line in lines:
        name, separator, value = line.partition(":")
        if not separator or not name.strip():
            continue
        parsed[name.strip().lower()] = value.strip()
    return parsed


def parse_request_line(request_line: str) -> Tuple[str, str]:
    """Return the method and the still percent-encoded path of the request."""
    try:
        method, target, version = request_line.split(" ", 2)
    except ValueError as exc:
        raise ValueError("Invalid request line") from exc
    if not version.startswith("HTTP/1."):
        raise ValueError("Unsupported protocol version")
    path = target.partition("?")[0].partition("#")[0]
    if not path.startswith("/"):
        raise ValueError("Request target must be an absolute path")
    return method.upper(), path


def determine_content_length(method: str, headers: dict[str, str]) -> int:
    """Validate and return the declared Content-Length for the request."""
    if "chunked" in headers.get("transfer-encoding", "").lower():
        raise ValueError("Chunked request bodies are not supported")
    header_value = headers.get("content-length")
    if header_value is None:
        if method == "POST":
            raise ValueError("Missing Content-Length")
        return 0
    try:
        content_length = int(header_value)
    except ValueError as exc:
        raise ValueError("Invalid Content-Length") from exc
    if content_length < 0:
        raise ValueError("Negative Content-Length")
    if content_length > MAX_UPLOAD_BYTES:
        raise RequestEntityTooLarge(content_length)
    return content_length


def receive_request(
    client_socket: socket.socket, buffer: bytes
) -> Tuple[Optional[HttpRequest], bytes]:
    """Read until one complete request is buffered; return it and any leftover.

    Returns ``(None, b"")`` when the peer closes the connection first.
    """
    pending = bytearray(buffer)
    while HEADER_DELIMITER not in pending:
        if len(pending) > MAX_HEADER_BYTES:
            raise ValueError("Header block too large")
        chunk = client_socket.recv(RECV_SIZE)
        if not chunk:
            return None, b""
        pending += chunk

    split_at = pending.index(HEADER_DELIMITER)
    header_block = bytes(pending[:split_at])
    del pending[: split_at + len(HEADER_DELIMITER)]
    header_lines = header_block.decode("iso-8859-1").split("\r\n")
    method, path = parse_request_line(header_lines[0])
    headers = parse_headers(header_lines[1:])
    content_length = determine_content_length(method, headers)

    while len(pending) < content_length:
        chunk = client_socket.recv(min(RECV_SIZE, content_length - len(pending)))
        if not chunk:
            return None, b""
        pending += chunk

    body = bytes(pending[:content_length])
    leftover = bytes(pending[content_length:])
    IO_LOGGER.debug(
        "Parsed request",
        extra={"method": method, "path": path, "bytes_in": content_length},
    )
    return HttpRequest(method, path, headers, body), leftover


def send_response(client_socket: socket.socket, response: HttpResponse) -> None:
    """Serialize and send the HTTP response over the socket."""
    headers = dict(response.headers)

    correlation_id = get_correlation_id()
    if correlation_id:
        headers["X-Request-ID"] = correlation_id

    if response.body_iter is not None and response.content_length is not None:
        headers["Content-Length"] = str(response.content_length)
    else:
        headers["Content-Length"] = str(len(response.body))
    if response.close_connection:
        headers["Connection"] = "close"

    header_lines = [response.status_line]
    header_lines.extend(f"{name}: {value}" for name, value in headers.items())
    header_block = "\r\n".join(header_lines).encode("latin-1", errors="replace")
    header_block += HEADER_DELIMITER

    if response.omit_body:
        client_socket.sendall(header_block)
    elif response.body_iter is not None:
        client_socket.sendall(header_block)
        for chunk in response.body_iter:
            if chunk:
                client_socket.sendall(chunk)
    else:
        client_socket.sendall(header_block + response.body)
    IO_LOGGER.debug(
        "Sent response",
        extra={"status_code": response.status_code, "bytes_out": headers["Content-Length"]},
    )
