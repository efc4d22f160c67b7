from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any
from uuid import uuid4

from stakes_ledger.domain import (
    GameSetup,
    GameVariant,
    NotFoundError,
    Player,
    PlayerTotal,
    SessionState,
    build_transfers,
    dump_history,
    dump_players,
    dump_setup,
    get_variant,
    load_history,
    load_players,
    load_setup,
)
from stakes_ledger.domain import session as commands
from stakes_ledger.services.autosave import AutoSaver
from stakes_ledger.storage.store import SessionStore, SessionSummary, StoredSession

logger = logging.getLogger(__name__)


class SessionNotFoundError(NotFoundError):
    """Raised when no open or stored session matches the given key or id."""


@dataclass
class OpenSession:
    key: str
    account_id: int
    session_name: str
    state: SessionState


def default_session_name(now: datetime | None = None) -> str:
    return f"Game {(now or datetime.now()):%d/%m/%Y %H:%M}"


class LedgerService:
    """Runs session commands and keeps the store in sync with the open sessions."""

    def __init__(self, store: SessionStore, autosaver: AutoSaver) -> None:
        self.store = store
        self.autosaver = autosaver
        self._sessions: dict[str, OpenSession] = {}
        # guards _sessions against the autosave timer threads
        self._lock = threading.Lock()

    def create_session(self, variant: GameVariant | str, account_id: int, session_name: str | None = None) -> OpenSession:
        state = commands.start_session(variant)
        opened = OpenSession(
            key=uuid4().hex,
            account_id=account_id,
            session_name=(session_name or "").strip() or default_session_name(),
            state=state,
        )
        with self._lock:
            self._sessions[opened.key] = opened
        logger.info("opened new %s session %s for account %s", state.variant.value, opened.key, account_id)
        return opened

    def get_session(self, key: str) -> OpenSession:
        opened = self._sessions.get(key)
        if opened is None:
            raise SessionNotFoundError(f"session {key} is not open")
        return opened

    def close_session(self, key: str) -> None:
        self.get_session(key)
        self.autosaver.flush(key)
        with self._lock:
            self._sessions.pop(key, None)

    def submit_setup(self, key: str, setup: GameSetup) -> OpenSession:
        return self._apply(key, commands.submit_setup, setup)

    def update_player(self, key: str, player_id: int, changes: Mapping[str, Any]) -> OpenSession:
        """Apply several input changes for one player as a single command."""

        def change(state: SessionState) -> SessionState:
            if "name" in changes:
                state = commands.rename_player(state, player_id, changes["name"])
            if "position" in changes:
                state = commands.select_position(state, player_id, changes["position"])
            if "adjustment" in changes:
                state = commands.set_adjustment(state, player_id, changes["adjustment"])
            if "bet_amount" in changes:
                state = commands.set_bet(state, player_id, changes["bet_amount"])
            if "result" in changes:
                state = commands.set_result(state, player_id, changes["result"])
            if "win_type" in changes:
                state = commands.select_winner(state, player_id, changes["win_type"])
            return state

        return self._apply(key, change)

    def designate_banker(self, key: str, player_id: int) -> OpenSession:
        return self._apply(key, commands.designate_banker, player_id)

    def calculate(self, key: str) -> OpenSession:
        return self._apply(key, commands.calculate)

    def new_round(self, key: str) -> OpenSession:
        return self._apply(key, commands.new_round)

    def undo(self, key: str) -> OpenSession:
        return self._apply(key, commands.undo)

    def reset(self, key: str) -> OpenSession:
        return self._apply(key, commands.reset)

    def edit_round(self, key: str, round_id: int, players: list[Player]) -> OpenSession:
        return self._apply(key, commands.edit_round, round_id, players)

    def delete_round(self, key: str, round_id: int) -> OpenSession:
        return self._apply(key, commands.delete_round, round_id)

    def totals(self, key: str) -> tuple[list[PlayerTotal], list[dict[str, int]]]:
        totals = commands.aggregate_totals(self.get_session(key).state)
        return totals, build_transfers({total.id: total.total for total in totals})

    def save_now(self, key: str) -> StoredSession | None:
        """Save immediately instead of waiting for the debounce timer; errors propagate."""
        self.get_session(key)
        return self.autosaver.run_now(key, lambda: self._persist(key))

    def list_saved(self, account_id: int, variant: GameVariant | str) -> list[SessionSummary]:
        return self.store.list(account_id, get_variant(variant).variant.value)

    def open_saved(self, session_id: int) -> OpenSession:
        for opened in list(self._sessions.values()):
            if opened.state.session_id == session_id:
                return opened

        stored = self.store.load(session_id)
        if stored is None:
            raise SessionNotFoundError(f"saved session {session_id} not found")

        state = commands.resume_session(
            stored.game_type,
            load_setup(stored.game_type, stored.setup),
            load_players(stored.game_type, stored.players),
            load_history(stored.game_type, stored.history),
            session_id=stored.id,
        )
        opened = OpenSession(
            key=uuid4().hex,
            account_id=stored.account_id,
            session_name=stored.session_name,
            state=state,
        )
        with self._lock:
            self._sessions[opened.key] = opened
        logger.info("opened saved session %s as %s with %d rounds", session_id, opened.key, len(state.ledger))
        return opened

    def delete_saved(self, session_id: int) -> None:
        with self._lock:
            linked = [key for key, opened in self._sessions.items() if opened.state.session_id == session_id]
        for key in linked:
            with self._lock:
                self._sessions.pop(key, None)
            # a save already running must finish before the row goes away
            self.autosaver.cancel(key)
        self.store.delete(session_id)
        logger.info("deleted saved session %s", session_id)

    def _apply(self, key: str, command: Callable[..., SessionState], *args: Any) -> OpenSession:
        opened = self.get_session(key)
        with self._lock:
            opened.state = command(opened.state, *args)
        self.autosaver.schedule(key, lambda: self._persist(key))
        return opened

    def _persist(self, key: str) -> StoredSession | None:
        opened = self._sessions.get(key)
        if opened is None:
            return None
        state = opened.state
        if state.current_setup is None:
            logger.debug("session %s has no setup yet, nothing to save", key)
            return None

        stored = self.store.save(
            opened.account_id,
            state.variant.value,
            opened.session_name,
            dump_setup(state.current_setup),
            dump_players(state.current_players),
            dump_history(state.ledger),
            state.session_id,
        )
        with self._lock:
            opened.state = replace(opened.state, session_id=stored.id)
        logger.info("saved session %s as %s (%d rounds)", key, stored.id, len(state.ledger))
        return stored
