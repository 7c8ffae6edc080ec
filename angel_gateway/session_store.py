"""In-process storage for per-client Angel One session tokens."""
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime


@dataclass
class SessionRecord:
    """Tokens issued to one client by a successful login."""

    client_id: str
    api_key: str
    jwt_token: str
    feed_token: str
    refresh_token: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class SessionStore(ABC):
    """Keyed session storage used by the gateway handlers."""

    @abstractmethod
    def put(self, client_id: str, record: SessionRecord) -> None:
        """Store a record, replacing any existing one for the client."""

    @abstractmethod
    def get(self, client_id: str) -> SessionRecord | None:
        """Return the client's record, or None if there is none."""

    @abstractmethod
    def delete(self, client_id: str) -> None:
        """Remove the client's record. Does nothing if it is absent."""

    @abstractmethod
    def update_tokens(self, client_id: str, jwt_token: str, feed_token: str) -> SessionRecord | None:
        """Swap in new jwt/feed tokens if the client still has a record.

        Returns the updated record, or None when the session is gone.
        """


class InMemorySessionStore(SessionStore):
    """
    Dict-backed session store guarded by a lock.

    Records live until deleted or until the process exits; there is no expiry
    sweep. Concurrent writers for the same client are last-writer-wins.
    """

    def __init__(self):
        self._records: dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def put(self, client_id: str, record: SessionRecord) -> None:
        with self._lock:
            self._records[client_id] = record

    def get(self, client_id: str) -> SessionRecord | None:
        with self._lock:
            return self._records.get(client_id)

    def delete(self, client_id: str) -> None:
        with self._lock:
            self._records.pop(client_id, None)

    def update_tokens(self, client_id: str, jwt_token: str, feed_token: str) -> SessionRecord | None:
        with self._lock:
            current = self._records.get(client_id)
            if current is None:
                return None
            updated = replace(current, jwt_token=jwt_token, feed_token=feed_token)
            self._records[client_id] = updated
            return updated

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, client_id: object) -> bool:
        with self._lock:
            return client_id in self._records
