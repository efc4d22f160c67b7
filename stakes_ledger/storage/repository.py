from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from stakes_ledger.storage.models import GameSessionRecord
from stakes_ledger.storage.store import SessionSummary, StoredSession

logger = logging.getLogger(__name__)


class SqlSessionStore:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

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
        with self._session_factory() as db:
            record = db.get(GameSessionRecord, session_id) if session_id is not None else None
            if record is None:
                if session_id is not None:
                    logger.info("session %s vanished from the store, saving it as a new one", session_id)
                record = GameSessionRecord(account_id=account_id, game_type=game_type)
                db.add(record)

            record.session_name = session_name
            record.setup = setup
            record.players = players
            record.history = history
            record.last_updated = datetime.now(timezone.utc)
            db.commit()
            db.refresh(record)
            return _to_stored(record)

    def load(self, session_id: int) -> StoredSession | None:
        with self._session_factory() as db:
            record = db.get(GameSessionRecord, session_id)
            if record is None:
                return None
            return _to_stored(record)

    def list(self, account_id: int, game_type: str) -> list[SessionSummary]:
        with self._session_factory() as db:
            rows = db.execute(
                select(GameSessionRecord.id, GameSessionRecord.session_name, GameSessionRecord.last_updated)
                .where(GameSessionRecord.account_id == account_id, GameSessionRecord.game_type == game_type)
                .order_by(GameSessionRecord.last_updated.desc(), GameSessionRecord.id.desc())
            ).all()
            return [
                SessionSummary(id=row.id, session_name=row.session_name, last_updated=row.last_updated)
                for row in rows
            ]

    def delete(self, session_id: int) -> None:
        with self._session_factory() as db:
            record = db.get(GameSessionRecord, session_id)
            if record is None:
                return
            db.delete(record)
            db.commit()


def _to_stored(record: GameSessionRecord) -> StoredSession:
    return StoredSession(
        id=record.id,
        account_id=record.account_id,
        game_type=record.game_type,
        session_name=record.session_name,
        setup=record.setup,
        players=list(record.players or []),
        history=list(record.history or []),
        last_updated=record.last_updated,
        created_at=record.created_at,
    )
