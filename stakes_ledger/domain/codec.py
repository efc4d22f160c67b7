"""Conversion of session values to plain JSON-compatible structures and back.

Nothing here picks a wire format: stores receive dicts and lists of
str/int/bool/None and decide how to keep them.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import fields
from datetime import datetime
from enum import Enum
from typing import Any

from .game import (
    BankerResult,
    DomainValidationError,
    GameSetup,
    GameVariant,
    LadderRule,
    Player,
    Position,
    Round,
    WinType,
)
from .ledger import RoundLedger
from .variants import get_variant

_ENUM_FIELDS: dict[str, type[Enum]] = {
    "rule": LadderRule,
    "position": Position,
    "result": BankerResult,
    "win_type": WinType,
}


def _dump_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _load_fields(cls: type, data: Mapping[str, Any]) -> dict[str, Any]:
    known = {f.name for f in fields(cls)}
    values: dict[str, Any] = {}
    for name, raw in data.items():
        if name not in known:
            continue
        enum_type = _ENUM_FIELDS.get(name)
        values[name] = enum_type(raw) if enum_type is not None and raw is not None else raw
    return values


def dump_setup(setup: GameSetup | None) -> dict[str, Any] | None:
    if setup is None:
        return None
    return {f.name: _dump_value(getattr(setup, f.name)) for f in fields(setup)}


def load_setup(variant: GameVariant | str, data: Mapping[str, Any] | None) -> GameSetup | None:
    if data is None:
        return None
    setup_type = get_variant(variant).setup_type
    try:
        return setup_type(**_load_fields(setup_type, data))
    except DomainValidationError:
        raise
    except (TypeError, ValueError) as exc:
        raise DomainValidationError(f"malformed setup: {exc}") from exc


def dump_players(players: Sequence[Player]) -> list[dict[str, Any]]:
    return [{f.name: _dump_value(getattr(player, f.name)) for f in fields(player)} for player in players]


def load_players(variant: GameVariant | str, data: Sequence[Mapping[str, Any]]) -> tuple[Player, ...]:
    player_type = get_variant(variant).player_type
    try:
        return tuple(player_type(**_load_fields(player_type, item)) for item in data)
    except (TypeError, ValueError) as exc:
        raise DomainValidationError(f"malformed players: {exc}") from exc


def dump_history(ledger: RoundLedger) -> list[dict[str, Any]]:
    return [
        {
            "id": round_.id,
            "players": dump_players(round_.players),
            "setup": dump_setup(round_.setup),
            "timestamp": round_.timestamp.isoformat(),
        }
        for round_ in ledger.rounds
    ]


def load_history(variant: GameVariant | str, data: Sequence[Mapping[str, Any]]) -> RoundLedger:
    rounds = tuple(
        Round(
            id=int(item["id"]),
            players=load_players(variant, item["players"]),
            setup=load_setup(variant, item["setup"]),
            timestamp=datetime.fromisoformat(item["timestamp"]),
        )
        for item in data
    )
    return RoundLedger(rounds=rounds)
