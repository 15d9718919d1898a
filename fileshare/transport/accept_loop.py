"""Main connection acceptance loop."""

import socket
import threading
from typing import Optional

from fileshare.bootstrap.config import SECURITY_HEADERS, ServerConfig
from fileshare.bootstrap.socket_factory import create_server_socket
from fileshare.domain.correlation_id import component_logger
from fileshare.domain.response_builders import draining_response
from fileshare.lifecycle.state import ServerLifecycle
from fileshare.pipeline.io import send_response
from fileshare.transport.client_registry import ClientRegistry
from fileshare.transport.context import WorkerContext
from fileshare.transport.worker import handle_client

ACCEPT_LOGGER = component_logger("transport.accept")


def _handle_accepted_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    registry: ClientRegistry,
    handler_context: WorkerContext,
) -> threading.Thread:
    """Log first sightings and hand the connection to its own thread."""
    if registry.record(client_address[0]):
        ACCEPT_LOGGER.info(
            "New client connected",
            extra={"event": "client_connected", "client": client_address[0]},
        )
    thread = threading.Thread(
        target=handle_client,
        args=(client_socket, client_address, handler_context),
        name=f"conn-{client_address[0]}:{client_address[1]}",
        daemon=True,
    )
    if handler_context.lifecycle is not None:
        handler_context.lifecycle.register_worker(thread)
    thread.start()
    return thread


def _reject_while_draining(client_socket: socket.socket, config: ServerConfig) -> None:
    # Plain-text 503 would be noise on a TLS listener; just close there.
    try:
        if config.tls_context is None:
            send_response(client_socket, draining_response(SECURITY_HEADERS))
    except OSError:
        pass
    finally:
        client_socket.close()


def run_server(
    host: str,
    port: int,
    config: ServerConfig,
    lifecycle: ServerLifecycle,
    server_socket: Optional[socket.socket] = None,
) -> None:
    """Accept connections until draining starts, then wait for workers."""
    if server_socket is None:
        server_socket = create_server_socket(host, port)
    registry = ClientRegistry()
    handler_context = WorkerContext(config=config, lifecycle=lifecycle)

    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": host,
            "port": port,
            "tls": config.tls_enabled,
            "auth": config.credential is not None,
        },
    )

    try:
        while True:
            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                if lifecycle.should_stop():
                    break
                continue
            except OSError as error:
                if lifecycle.should_stop():
                    break
                ACCEPT_LOGGER.error(
                    "Socket accept failed",
                    extra={"event": "accept_error", "error_type": type(error).__name__},
                )
                continue

            if lifecycle.is_draining():
                _reject_while_draining(client_socket, config)
                continue

            _handle_accepted_client(
                client_socket, client_address, registry, handler_context
            )
    finally:
        server_socket.close()
        ACCEPT_LOGGER.info(
            "Waiting for active connections to complete",
            extra={
                "event": "shutdown_waiting",
                "grace_seconds": config.shutdown_grace_seconds,
            },
        )
        lifecycle.wait_for_workers(config.shutdown_grace_seconds)
        ACCEPT_LOGGER.info("Server shutdown complete", extra={"event": "server_stopped"})
