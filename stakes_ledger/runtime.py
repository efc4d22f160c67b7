from __future__ import annotations

from functools import lru_cache

from stakes_ledger.config import settings
from stakes_ledger.service import LedgerService
from stakes_ledger.services.autosave import AutoSaver
from stakes_ledger.storage.database import SessionLocal, init_db
from stakes_ledger.storage.repository import SqlSessionStore


@lru_cache
def get_service() -> LedgerService:
    init_db()
    return LedgerService(SqlSessionStore(SessionLocal), AutoSaver(settings.autosave_delay_seconds))


def shutdown() -> None:
    if get_service.cache_info().currsize:
        get_service().autosaver.shutdown()
