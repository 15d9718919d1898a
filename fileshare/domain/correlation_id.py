"""Per-request correlation IDs carried through log records."""

import contextlib
import contextvars
import logging
import uuid
from typing import Any, Iterator, MutableMapping, Optional

LOGGER_PREFIX = "fileshare."

_correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)


def generate_correlation_id() -> str:
    """Return a fresh short request identifier."""
    return uuid.uuid4().hex[:16]


def get_correlation_id() -> Optional[str]:
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)


@contextlib.contextmanager
def request_scope() -> Iterator[str]:
    """Bind a new correlation ID for the duration of one request."""
    correlation_id = generate_correlation_id()
    set_correlation_id(correlation_id)
    try:
        yield correlation_id
    finally:
        clear_correlation_id()


class CorrelationLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that stamps records with the correlation ID and component."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        correlation_id = get_correlation_id()
        extra["correlation_id"] = correlation_id if correlation_id is not None else "-"

        logger_name = self.logger.name
        if logger_name.startswith(LOGGER_PREFIX):
            extra["component"] = logger_name[len(LOGGER_PREFIX) :]
        else:
            extra["component"] = logger_name
        kwargs["extra"] = extra
        return msg, kwargs


def component_logger(name: str) -> CorrelationLoggerAdapter:
    """Return the adapter-wrapped logger for a ``fileshare`` sub-component."""
    return CorrelationLoggerAdapter(logging.getLogger(LOGGER_PREFIX + name), {})
