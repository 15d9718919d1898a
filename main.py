"""Share a directory over HTTP with uploads and ZIP downloads."""

import signal
import ssl
import sys
from typing import Optional

from fileshare.bootstrap.config import ServerConfig, parse_cli_args
from fileshare.bootstrap.logging_setup import configure_logging
from fileshare.bootstrap.socket_factory import create_tls_context
from fileshare.domain.correlation_id import component_logger
from fileshare.domain.sandbox import sandbox_root
from fileshare.lifecycle.state import ServerLifecycle
from fileshare.transport.accept_loop import run_server

SERVER_LOGGER = component_logger("server")


def main(argv: Optional[list[str]] = None) -> None:
    """Start the server and spawn a worker thread per connection."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level, args.log_destination, args.log_format == "json")

    try:
        root = sandbox_root(args.directory)
    except OSError as error:
        SERVER_LOGGER.critical(
            "Served directory is not usable",
            extra={"directory": args.directory, "error_type": type(error).__name__},
        )
        sys.exit(1)

    try:
        tls_context = create_tls_context(args.cert, args.key)
    except (ssl.SSLError, OSError) as error:
        SERVER_LOGGER.critical(
            "Failed to load TLS certificates",
            extra={"error_type": type(error).__name__},
        )
        sys.exit(1)

    config = ServerConfig(
        root=root,
        credential=args.auth,
        tls_context=tls_context,
        socket_timeout=args.socket_timeout,
        shutdown_grace_seconds=args.shutdown_grace_seconds,
    )
    lifecycle = ServerLifecycle()

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info("Received shutdown signal", extra={"signal": signum})
        lifecycle.begin_draining()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting file sharing server",
        extra={
            "host": args.host,
            "port": args.port,
            "directory": root.path.as_posix(),
            "log_destination": args.log_destination,
            "log_level": args.log_level,
            "tls": config.tls_enabled,
            "auth": config.credential is not None,
            "socket_timeout": config.socket_timeout,
            "shutdown_grace_seconds": config.shutdown_grace_seconds,
        },
    )
    try:
        run_server(args.host, args.port, config, lifecycle)
    except OSError as error:
        SERVER_LOGGER.critical(
            "Failed to bind listening socket",
            extra={"host": args.host, "port": args.port, "error_type": type(error).__name__},
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
