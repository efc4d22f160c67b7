import time

from stakes_ledger.storage.repository import SqlSessionStore


SETUP = {"number_of_players": 2, "rule": "winner-takes-all", "bet_amount": 100, "bet_level1": 0, "bet_level2": 0}
PLAYERS = [
    {"id": 1, "name": "An", "money": 100, "position": "nhat", "adjustment": 0},
    {"id": 2, "name": "Binh", "money": -100, "position": "nhi", "adjustment": 0},
]


def test_save_creates_then_updates(store: SqlSessionStore) -> None:
    created = store.save(1, "tien-len", "Friday", SETUP, PLAYERS, [])
    updated = store.save(1, "tien-len", "Friday night", SETUP, PLAYERS, [{"id": 1}], created.id)

    assert updated.id == created.id
    loaded = store.load(created.id)
    assert loaded is not None
    assert loaded.session_name == "Friday night"
    assert loaded.players == PLAYERS
    assert loaded.history == [{"id": 1}]
    assert loaded.setup == SETUP
    assert loaded.created_at is not None


def test_save_with_vanished_id_creates_a_new_row(store: SqlSessionStore) -> None:
    saved = store.save(1, "kach-te", "Lost", None, [], [], session_id=404)

    assert saved.id != 404
    assert store.load(saved.id) is not None


def test_list_filters_by_account_and_game_and_orders_by_recency(store: SqlSessionStore) -> None:
    older = store.save(1, "tien-len", "older", SETUP, PLAYERS, [])
    time.sleep(0.01)
    newer = store.save(1, "tien-len", "newer", SETUP, PLAYERS, [])
    store.save(2, "tien-len", "other account", SETUP, PLAYERS, [])
    store.save(1, "xi-dach", "other game", None, [], [])

    listed = store.list(1, "tien-len")

    assert [summary.id for summary in listed] == [newer.id, older.id]
    assert [summary.session_name for summary in listed] == ["newer", "older"]

    time.sleep(0.01)
    store.save(1, "tien-len", "older", SETUP, PLAYERS, [], older.id)
    assert [summary.id for summary in store.list(1, "tien-len")] == [older.id, newer.id]


def test_delete_removes_and_ignores_unknown_ids(store: SqlSessionStore) -> None:
    saved = store.save(1, "tien-len", "gone", SETUP, PLAYERS, [])

    store.delete(saved.id)
    store.delete(saved.id)

    assert store.load(saved.id) is None
    assert store.list(1, "tien-len") == []
