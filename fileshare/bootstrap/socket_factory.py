"""Listening socket creation and the TLS acceptor capability."""

import socket
import ssl
from typing import Optional

from fileshare.domain.correlation_id import component_logger

SOCKET_LOGGER = component_logger("bootstrap.socket")

ACCEPT_POLL_SECONDS = 0.5


def create_server_socket(host: str, port: int) -> socket.socket:
    """Bind a plain TCP listener; TLS is negotiated per connection by workers."""
    server_socket = socket.create_server((host, port), reuse_port=True)
    server_socket.settimeout(ACCEPT_POLL_SECONDS)
    return server_socket


def create_tls_context(
    cert_path: Optional[str], key_path: Optional[str]
) -> Optional[ssl.SSLContext]:
    """Load a server-side TLS context, or return None when TLS is not configured.

    Raises ``ssl.SSLError`` or ``OSError`` when the pair cannot be loaded.
    """
    if not (cert_path and key_path):
        return None
    tls_context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    tls_context.minimum_version = ssl.TLSVersion.TLSv1_2
    tls_context.load_cert_chain(cert_path, key_path)
    SOCKET_LOGGER.info(
        "TLS certificate loaded",
        extra={"event": "tls_loaded", "path": cert_path},
    )
    return tls_context
