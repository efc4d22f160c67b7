"""Static description of the supported game variants.

Each variant names the setup and player types it works with and the per-round
inputs a player must carry before the round can be settled. Settlement itself
lives in :mod:`stakes_ledger.domain.settlement`.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from .game import (
    BankerPlayer,
    BankerSetup,
    DomainValidationError,
    GameSetup,
    GameVariant,
    LadderPlayer,
    LadderSetup,
    Player,
    PotPlayer,
    PotSetup,
    default_player_name,
)


@dataclass(frozen=True)
class VariantDefinition:
    variant: GameVariant
    title: str
    setup_type: type[GameSetup]
    player_type: type[Player]
    required_inputs: tuple[str, ...]
    count_missing: Callable[[Sequence[Player]], int]
    clear_inputs: Callable[[Player], Player]

    def new_player(self, player_id: int, setup: GameSetup) -> Player:
        player = self.player_type(id=player_id, name=default_player_name(player_id))
        if isinstance(setup, BankerSetup):
            player = replace(player, is_house=player_id == setup.banker_id)
        return player


def _missing_position(players: Sequence[Player]) -> int:
    return sum(1 for player in players if player.position is None)


def _missing_bet_or_result(players: Sequence[Player]) -> int:
    return sum(
        1
        for player in players
        if not player.is_house and (player.bet_amount <= 0 or player.result is None)
    )


def _missing_winner(players: Sequence[Player]) -> int:
    has_winner = any(player.is_winner and player.win_type is not None for player in players)
    return 0 if has_winner else 1


def _clear_ladder(player: Player) -> Player:
    return replace(player, money=0, position=None, adjustment=0)


def _clear_banker(player: Player) -> Player:
    # the banker seat carries over between rounds
    return replace(player, money=0, bet_amount=0, result=None)


def _clear_pot(player: Player) -> Player:
    return replace(player, money=0, is_winner=False, win_type=None)


VARIANTS: dict[GameVariant, VariantDefinition] = {
    GameVariant.LADDER: VariantDefinition(
        variant=GameVariant.LADDER,
        title="Ladder (tien len)",
        setup_type=LadderSetup,
        player_type=LadderPlayer,
        required_inputs=("position",),
        count_missing=_missing_position,
        clear_inputs=_clear_ladder,
    ),
    GameVariant.BANKER: VariantDefinition(
        variant=GameVariant.BANKER,
        title="Banker (xi dach)",
        setup_type=BankerSetup,
        player_type=BankerPlayer,
        required_inputs=("bet_amount", "result"),
        count_missing=_missing_bet_or_result,
        clear_inputs=_clear_banker,
    ),
    GameVariant.POT: VariantDefinition(
        variant=GameVariant.POT,
        title="Pot (kach te)",
        setup_type=PotSetup,
        player_type=PotPlayer,
        required_inputs=("is_winner", "win_type"),
        count_missing=_missing_winner,
        clear_inputs=_clear_pot,
    ),
}


def get_variant(variant: GameVariant | str) -> VariantDefinition:
    try:
        return VARIANTS[GameVariant(variant)]
    except ValueError as exc:
        raise DomainValidationError(f"unsupported game variant: {variant}") from exc


def ensure_players_match(definition: VariantDefinition, setup: GameSetup, players: Sequence[Player]) -> None:
    """Check that setup and players belong to ``definition`` and agree on the head count."""
    if not isinstance(setup, definition.setup_type):
        raise DomainValidationError(f"setup does not belong to variant {definition.variant.value}")
    wrong_type = [player.id for player in players if not isinstance(player, definition.player_type)]
    if wrong_type:
        raise DomainValidationError(f"players {wrong_type} do not belong to variant {definition.variant.value}")
    if len(players) != setup.number_of_players:
        raise DomainValidationError(
            f"expected {setup.number_of_players} players, got {len(players)}"
        )
    ids = [player.id for player in players]
    if len(set(ids)) != len(ids):
        raise DomainValidationError("player ids must be unique")
