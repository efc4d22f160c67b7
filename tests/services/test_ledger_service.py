import threading
from datetime import datetime

import pytest

from stakes_ledger.domain import (
    BankerResult,
    BankerSetup,
    GameVariant,
    IncompleteInputError,
    LadderSetup,
    Position,
)
from stakes_ledger.service import LedgerService, SessionNotFoundError, default_session_name
from stakes_ledger.services.autosave import AutoSaver
from stakes_ledger.storage.repository import SqlSessionStore


@pytest.fixture
def service(store: SqlSessionStore) -> LedgerService:
    return LedgerService(store, AutoSaver(delay_seconds=60))


def play_ladder_round(service: LedgerService, key: str, *positions: Position) -> None:
    for player_id, position in enumerate(positions, start=1):
        service.update_player(key, player_id, {"position": position})
    service.calculate(key)


def test_default_name_uses_day_first_date():
    assert default_session_name(datetime(2025, 3, 7, 9, 5)) == "Game 07/03/2025 09:05"


def test_commands_schedule_a_single_debounced_save(service: LedgerService, store: SqlSessionStore):
    opened = service.create_session(GameVariant.LADDER, account_id=1, session_name="  Friday  ")
    service.submit_setup(opened.key, LadderSetup(number_of_players=3, bet_amount=1000))
    play_ladder_round(service, opened.key, Position.NHAT, Position.NHI, Position.BA)

    assert opened.session_name == "Friday"
    assert service.autosaver.pending() == [opened.key]
    assert store.list(1, "tien-len") == []

    service.autosaver.flush(opened.key)

    [summary] = store.list(1, "tien-len")
    assert summary.session_name == "Friday"
    assert service.get_session(opened.key).state.session_id == summary.id


def test_nothing_is_saved_before_setup(service: LedgerService, store: SqlSessionStore):
    opened = service.create_session(GameVariant.POT, account_id=1)

    assert service.save_now(opened.key) is None
    assert store.list(1, "kach-te") == []


def test_save_now_updates_the_same_row(service: LedgerService, store: SqlSessionStore):
    opened = service.create_session(GameVariant.LADDER, account_id=1)
    service.submit_setup(opened.key, LadderSetup(number_of_players=2, bet_amount=500))

    first = service.save_now(opened.key)
    play_ladder_round(service, opened.key, Position.NHI, Position.NHAT)
    second = service.save_now(opened.key)

    assert first.id == second.id
    assert len(second.history) == 1
    assert service.autosaver.pending() == []


def test_failed_command_keeps_state(service: LedgerService):
    opened = service.create_session(GameVariant.LADDER, account_id=1)
    service.submit_setup(opened.key, LadderSetup(number_of_players=4, bet_amount=500))
    before = opened.state

    with pytest.raises(IncompleteInputError):
        service.calculate(opened.key)

    assert service.get_session(opened.key).state is before


def test_update_player_applies_all_changes(service: LedgerService):
    opened = service.create_session(GameVariant.BANKER, account_id=1)
    service.submit_setup(opened.key, BankerSetup(number_of_players=2, banker_id=1))

    service.update_player(opened.key, 2, {"name": "Hoa", "bet_amount": 300, "result": BankerResult.LOSE})
    state = service.calculate(opened.key).state

    assert {(p.name, p.money) for p in state.current_players} == {("Player 1", 300), ("Hoa", -300)}


def test_totals_include_transfers(service: LedgerService):
    opened = service.create_session(GameVariant.LADDER, account_id=1)
    service.submit_setup(opened.key, LadderSetup(number_of_players=3, bet_amount=1000))
    play_ladder_round(service, opened.key, Position.NHAT, Position.NHI, Position.BA)

    totals, transfers = service.totals(opened.key)

    assert [(t.id, t.total) for t in totals] == [(1, 2000), (2, -1000), (3, -1000)]
    assert transfers == [{"from": 2, "to": 1, "amount": 1000}, {"from": 3, "to": 1, "amount": 1000}]


def test_open_saved_restores_the_session(service: LedgerService, store: SqlSessionStore):
    opened = service.create_session(GameVariant.LADDER, account_id=7)
    service.submit_setup(opened.key, LadderSetup(number_of_players=3, bet_amount=1000))
    play_ladder_round(service, opened.key, Position.NHAT, Position.NHI, Position.BA)
    saved = service.save_now(opened.key)
    service.close_session(opened.key)

    reopened = service.open_saved(saved.id)

    assert reopened.key != opened.key
    assert reopened.account_id == 7
    assert reopened.state.calculated
    assert reopened.state.ledger == opened.state.ledger
    assert service.open_saved(saved.id) is reopened

    # recalculating after reopening must not add a round
    assert len(service.calculate(reopened.key).state.ledger) == 1


def test_open_unknown_saved_session(service: LedgerService):
    with pytest.raises(SessionNotFoundError):
        service.open_saved(999)


def test_delete_saved_closes_linked_sessions(service: LedgerService, store: SqlSessionStore):
    opened = service.create_session(GameVariant.LADDER, account_id=1)
    service.submit_setup(opened.key, LadderSetup(number_of_players=2, bet_amount=100))
    saved = service.save_now(opened.key)
    service.new_round(opened.key)

    service.delete_saved(saved.id)

    assert store.load(saved.id) is None
    assert service.autosaver.pending() == []
    with pytest.raises(SessionNotFoundError):
        service.get_session(opened.key)


def test_close_flushes_pending_changes(service: LedgerService, store: SqlSessionStore):
    opened = service.create_session(GameVariant.LADDER, account_id=1)
    service.submit_setup(opened.key, LadderSetup(number_of_players=2, bet_amount=100))

    service.close_session(opened.key)

    assert len(store.list(1, "tien-len")) == 1
    with pytest.raises(SessionNotFoundError):
        service.close_session(opened.key)


class BlockingStore:
    """Real store whose next save waits until ``release`` is set."""

    def __init__(self, inner: SqlSessionStore, block: bool = True) -> None:
        self._inner = inner
        self.block = block
        self.started = threading.Event()
        self.release = threading.Event()

    def save(self, *args, **kwargs):
        if self.block:
            self.block = False
            self.started.set()
            self.release.wait(timeout=5)
        return self._inner.save(*args, **kwargs)

    def __getattr__(self, name):
        return getattr(self._inner, name)


def test_explicit_save_during_first_autosave_keeps_one_row(store: SqlSessionStore):
    blocking = BlockingStore(store)
    service = LedgerService(blocking, AutoSaver(delay_seconds=0.01))
    opened = service.create_session(GameVariant.LADDER, account_id=1)
    service.submit_setup(opened.key, LadderSetup(number_of_players=2, bet_amount=100))
    assert blocking.started.wait(timeout=2)

    results = []
    saver = threading.Thread(target=lambda: results.append(service.save_now(opened.key)))
    saver.start()
    saver.join(timeout=0.1)
    assert saver.is_alive()

    blocking.release.set()
    saver.join(timeout=2)

    [summary] = store.list(1, "tien-len")
    assert results[0].id == summary.id
    assert service.get_session(opened.key).state.session_id == summary.id


def test_delete_saved_waits_for_a_running_autosave(store: SqlSessionStore):
    blocking = BlockingStore(store, block=False)
    service = LedgerService(blocking, AutoSaver(delay_seconds=0.01))
    opened = service.create_session(GameVariant.LADDER, account_id=1)
    service.submit_setup(opened.key, LadderSetup(number_of_players=2, bet_amount=100))
    saved = service.save_now(opened.key)

    blocking.block = True
    service.update_player(opened.key, 1, {"name": "Lan"})
    assert blocking.started.wait(timeout=2)

    deleter = threading.Thread(target=service.delete_saved, args=(saved.id,))
    deleter.start()
    deleter.join(timeout=0.1)
    assert deleter.is_alive()

    blocking.release.set()
    deleter.join(timeout=2)

    assert store.load(saved.id) is None
    assert store.list(1, "tien-len") == []
