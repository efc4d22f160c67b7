from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol


@dataclass(slots=True)
class SessionSummary:
    id: int
    session_name: str
    last_updated: datetime


@dataclass(slots=True)
class StoredSession:
    id: int
    account_id: int
    game_type: str
    session_name: str
    setup: dict[str, Any] | None
    players: list[dict[str, Any]] = field(default_factory=list)
    history: list[dict[str, Any]] = field(default_factory=list)
    last_updated: datetime | None = None
    created_at: datetime | None = None


class SessionStore(Protocol):
    """Where serialized sessions are kept between visits."""

    def save(
        self,
        account_id: int,
        game_type: str,
        session_name: str,
        setup: dict[str, Any] | None,
        players: list[dict[str, Any]],
        history: list[dict[str, Any]],
        session_id: int | None = None,
    ) -> StoredSession:
        """Create the session when ``session_id`` is ``None``, otherwise update it."""

    def load(self, session_id: int) -> StoredSession | None: ...

    def list(self, account_id: int, game_type: str) -> list[SessionSummary]: ...

    def delete(self, session_id: int) -> None: ...
