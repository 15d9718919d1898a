"""Server configuration and CLI argument parsing."""

import argparse
import base64
import os
import ssl
from dataclasses import dataclass
from typing import Optional

from fileshare.domain.sandbox import SandboxedPath


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _env_str(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    return value if value else default


MAX_UPLOAD_BYTES = _env_int("FILESHARE_MAX_UPLOAD_BYTES", 500 * 1024 * 1024)
MAX_HEADER_BYTES = 64 * 1024
DEFAULT_PORT = _env_int("FILESHARE_PORT", 8080)
DEFAULT_SOCKET_TIMEOUT = _env_int("FILESHARE_SOCKET_TIMEOUT", 60)
DEFAULT_SHUTDOWN_GRACE_SECONDS = _env_int("FILESHARE_SHUTDOWN_GRACE_SECONDS", 30)

HEADER_DELIMITER = b"\r\n\r\n"
UPLOAD_SUFFIX = "/__upload"
DOWNLOAD_SUFFIX = "/__download"
INDEX_DOCUMENT = "index.html"
ARCHIVE_FILENAME = "fileshare-download.zip"
AUTH_REALM = "fileshare"
ALLOWED_METHODS = {"GET", "HEAD", "POST"}

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "Access-Control-Allow-Origin": "*",
}


@dataclass(frozen=True)
class Credential:
    """The single static username/password pair accepted by the server."""

    username: str
    password: str

    @classmethod
    def parse(cls, value: str) -> "Credential":
        """Build a credential from ``user:pass``; the password may contain colons."""
        username, separator, password = value.partition(":")
        if not separator or not username:
            raise ValueError("credential must look like user:pass")
        return cls(username, password)

    def header_token(self) -> str:
        """Return the base64 token a client sends after ``Basic``."""
        raw = f"{self.username}:{self.password}".encode("utf-8")
        return base64.b64encode(raw).decode("ascii")

    def __repr__(self) -> str:
        return f"Credential(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class ServerConfig:
    """Process-wide settings shared read-only by every connection."""

    root: SandboxedPath
    credential: Optional[Credential] = None
    tls_context: Optional[ssl.SSLContext] = None
    socket_timeout: int = DEFAULT_SOCKET_TIMEOUT
    shutdown_grace_seconds: int = DEFAULT_SHUTDOWN_GRACE_SECONDS

    @property
    def tls_enabled(self) -> bool:
        return self.tls_context is not None


def _credential_arg(value: str) -> Credential:
    try:
        return Credential.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(
        description="Share a directory over HTTP with uploads and ZIP downloads"
    )
    parser.add_argument("--directory", default=_env_str("FILESHARE_DIRECTORY", "."))
    parser.add_argument("--host", default=_env_str("FILESHARE_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--cert", help="Path to TLS certificate file")
    parser.add_argument("--key", help="Path to TLS private key file")
    parser.add_argument(
        "--auth",
        type=_credential_arg,
        default=_env_str("FILESHARE_AUTH", None),
        metavar="USER:PASS",
        help="Require HTTP Basic authentication with this credential",
    )
    parser.add_argument(
        "--log-level",
        default=(_env_str("FILESHARE_LOG_LEVEL", "INFO") or "INFO").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=_env_str("FILESHARE_LOG_DESTINATION", "stdout"),
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-format",
        default=_env_str("FILESHARE_LOG_FORMAT", "json"),
        choices=["json", "plain"],
    )
    parser.add_argument(
        "--socket-timeout",
        type=int,
        default=DEFAULT_SOCKET_TIMEOUT,
        help="Idle socket timeout in seconds",
    )
    parser.add_argument(
        "--shutdown-grace-seconds",
        type=int,
        default=DEFAULT_SHUTDOWN_GRACE_SECONDS,
        help="Grace period in seconds for graceful shutdown",
    )
    args = parser.parse_args(argv)
    if bool(args.cert) != bool(args.key):
        parser.error("--cert and --key must be given together")
    return args
