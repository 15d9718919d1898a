"""HTTP request/response value types shared across layers."""

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass
class HttpRequest:
    """A parsed HTTP/1.1 request with lowercase header names."""

    method: str
    path: str
    headers: dict[str, str]
    body: bytes


@dataclass
class HttpResponse:
    """An HTTP response ready to be serialized onto a connection.

    ``body_iter`` streams the payload in chunks when set; ``content_length``
    must then be supplied so the response can still be framed with
    Content-Length. ``omit_body`` keeps headers intact for HEAD requests.
    """

    status_line: str
    headers: dict[str, str]
    body: bytes
    close_connection: bool
    body_iter: Optional[Iterable[bytes]] = None
    content_length: Optional[int] = None
    omit_body: bool = False

    @property
    def status_code(self) -> int:
        return int(self.status_line.split(" ", 2)[1])


def should_close(headers: dict[str, str]) -> bool:
    """Determine whether the connection should be closed after responding."""
    return headers.get("connection", "").lower() == "close"
