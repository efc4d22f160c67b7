from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from stakes_ledger.storage.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GameSessionRecord(Base):
    __tablename__ = "game_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    game_type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    session_name: Mapped[str] = mapped_column(String(128), nullable=False)
    setup: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    players: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    history: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    last_updated: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, index=True)
