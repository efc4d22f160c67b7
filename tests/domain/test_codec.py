from datetime import datetime, timezone

import pytest

from stakes_ledger.domain import (
    DomainValidationError,
    GameVariant,
    LadderRule,
    LadderSetup,
    Position,
    PotSetup,
    WinType,
    dump_history,
    dump_players,
    dump_setup,
    load_history,
    load_players,
    load_setup,
)
from stakes_ledger.domain import session


def test_session_survives_a_dump_and_load():
    state = session.start_session(GameVariant.LADDER)
    state = session.submit_setup(
        state, LadderSetup(number_of_players=4, rule=LadderRule.TIERED, bet_level1=20000, bet_level2=10000)
    )
    for player_id, position in enumerate([Position.BA, Position.NHAT, Position.BET, Position.NHI], start=1):
        state = session.select_position(state, player_id, position)
    state = session.calculate(state, datetime(2025, 3, 1, 20, 0, tzinfo=timezone.utc))

    setup_data = dump_setup(state.current_setup)
    players_data = dump_players(state.current_players)
    history_data = dump_history(state.ledger)

    assert setup_data["rule"] == "tiered"
    assert players_data[1] == {"id": 2, "name": "Player 2", "money": 20000, "position": "nhat", "adjustment": 0}
    assert history_data[0]["timestamp"] == "2025-03-01T20:00:00+00:00"

    assert load_setup("tien-len", setup_data) == state.current_setup
    assert load_players("tien-len", players_data) == state.current_players
    assert load_history("tien-len", history_data) == state.ledger


def test_unknown_keys_are_ignored():
    setup = load_setup(GameVariant.POT, {"number_of_players": 3, "default_bet": 1, "jackpot_bet": 2, "theme": "dark"})
    players = load_players(GameVariant.POT, [{"id": 1, "name": "a", "win_type": "jackpot", "is_winner": True, "x": 1}])

    assert setup == PotSetup(number_of_players=3, default_bet=1, jackpot_bet=2)
    assert players[0].win_type is WinType.JACKPOT


def test_missing_setup_stays_missing():
    assert dump_setup(None) is None
    assert load_setup(GameVariant.LADDER, None) is None


@pytest.mark.parametrize(
    "data",
    [
        {"number_of_players": 3, "bet_amount": -5},
        {"number_of_players": 9, "bet_amount": 5},
        {"number_of_players": 3, "rule": "nobody-wins"},
    ],
)
def test_malformed_setup_is_rejected(data):
    with pytest.raises(DomainValidationError):
        load_setup(GameVariant.LADDER, data)


def test_malformed_players_are_rejected():
    with pytest.raises(DomainValidationError):
        load_players(GameVariant.LADDER, [{"id": 1, "name": "a", "position": "first"}])
