"""Set of client addresses the accept loop has already seen."""

import threading


class ClientRegistry:
    """Remembers client IPs so the first connection from each can be logged.

    Purely informational: nothing consults it to decide whether a connection
    is served.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._seen: set[str] = set()

    def record(self, client_ip: str) -> bool:
        """Record ``client_ip`` and return True if it had not been seen before."""
        with self._lock:
            if client_ip in self._seen:
                return False
            self._seen.add(client_ip)
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)
