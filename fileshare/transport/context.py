"""Context object shared across worker threads."""

from dataclasses import dataclass
from typing import Optional

from fileshare.bootstrap.config import ServerConfig
from fileshare.lifecycle.state import ServerLifecycle


@dataclass(frozen=True)
class WorkerContext:
    """Read-only dependencies handed to every connection worker."""

    config: ServerConfig
    lifecycle: Optional[ServerLifecycle] = None
