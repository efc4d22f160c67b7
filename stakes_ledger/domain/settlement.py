"""Domain logic for round settlement and settle-up transfer calculation."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace

from .game import (
    BankerPlayer,
    BankerResult,
    BankerSetup,
    DomainValidationError,
    GameSetup,
    GameVariant,
    IncompleteInputError,
    LadderPlayer,
    LadderRule,
    LadderSetup,
    Player,
    Position,
    PotPlayer,
    PotSetup,
    WinType,
)
from .variants import ensure_players_match, get_variant


def settle(variant: GameVariant, setup: GameSetup, players: Sequence[Player]) -> tuple[Player, ...]:
    """Compute every player's money for one round.

    Money is always recomputed from zero, so stale values on ``players`` are
    ignored. Raises :class:`IncompleteInputError` when some players lack the
    input the variant needs and :class:`DomainValidationError` when the input
    is inconsistent.
    """
    definition = get_variant(variant)
    ensure_players_match(definition, setup, players)

    missing = definition.count_missing(players)
    if missing:
        raise IncompleteInputError(missing)

    return _SETTLERS[definition.variant](setup, tuple(players))


def _settle_ladder(setup: LadderSetup, players: tuple[LadderPlayer, ...]) -> tuple[LadderPlayer, ...]:
    holders = _holders_by_position(players)
    net = {player.id: 0 for player in players}

    if setup.rule == LadderRule.WINNER_TAKES_ALL:
        winner = holders.get(Position.NHAT)
        if winner is None:
            raise DomainValidationError("winner-takes-all needs a player in first place")
        for player in players:
            net[player.id] = -setup.bet_amount
        net[winner.id] = setup.bet_amount * (setup.number_of_players - 1)
    else:
        _transfer(net, payer=holders[Position.BET], payee=holders[Position.NHAT], amount=setup.bet_level1)
        _transfer(net, payer=holders[Position.BA], payee=holders[Position.NHI], amount=setup.bet_level2)

    return tuple(replace(player, money=net[player.id] + player.adjustment) for player in players)


def _holders_by_position(players: Sequence[LadderPlayer]) -> dict[Position, LadderPlayer]:
    holders: dict[Position, LadderPlayer] = {}
    for player in players:
        if player.position in holders:
            raise DomainValidationError(f"position {player.position.value} is held by more than one player")
        holders[player.position] = player
    return holders


def _transfer(net: dict[int, int], *, payer: Player, payee: Player, amount: int) -> None:
    net[payer.id] -= amount
    net[payee.id] += amount


def _settle_banker(setup: BankerSetup, players: tuple[BankerPlayer, ...]) -> tuple[BankerPlayer, ...]:
    houses = [player.id for player in players if player.is_house]
    if houses != [setup.banker_id]:
        raise DomainValidationError(f"player {setup.banker_id} must be the only banker")

    house = next(player for player in players if player.is_house)
    net = {player.id: 0 for player in players}
    for player in players:
        if player.is_house:
            continue
        if player.result == BankerResult.WIN:
            _transfer(net, payer=house, payee=player, amount=player.bet_amount)
        else:
            _transfer(net, payer=player, payee=house, amount=player.bet_amount)

    return tuple(replace(player, money=net[player.id]) for player in players)


def _settle_pot(setup: PotSetup, players: tuple[PotPlayer, ...]) -> tuple[PotPlayer, ...]:
    winners = [player for player in players if player.is_winner]
    if len(winners) != 1:
        raise DomainValidationError("pot round must have exactly one winner")
    winner = winners[0]

    tier_bet = setup.jackpot_bet if winner.win_type == WinType.JACKPOT else setup.default_bet
    losers = setup.number_of_players - 1
    return tuple(
        replace(player, money=losers * tier_bet if player.id == winner.id else -tier_bet)
        for player in players
    )


_SETTLERS: dict[GameVariant, Callable[[GameSetup, tuple[Player, ...]], tuple[Player, ...]]] = {
    GameVariant.LADDER: _settle_ladder,
    GameVariant.BANKER: _settle_banker,
    GameVariant.POT: _settle_pot,
}


def build_transfers(net: Mapping[int, int]) -> list[dict[str, int]]:
    """Turn per-player balances (keyed by player id) into payments from debtors to creditors.

    The largest debt is matched with the largest credit first; ties go to the
    lower player id.
    """
    creditors = _largest_first({player_id: amount for player_id, amount in net.items() if amount > 0})
    debtors = _largest_first({player_id: -amount for player_id, amount in net.items() if amount < 0})

    transfers: list[dict[str, int]] = []
    while creditors and debtors:
        creditor_id, credit = creditors[0]
        debtor_id, debt = debtors[0]
        paid = min(credit, debt)
        transfers.append({"from": debtor_id, "to": creditor_id, "amount": paid})

        creditors[0] = (creditor_id, credit - paid)
        debtors[0] = (debtor_id, debt - paid)
        if credit == paid:
            creditors.pop(0)
        if debt == paid:
            debtors.pop(0)
    return transfers


def _largest_first(balances: Mapping[int, int]) -> list[tuple[int, int]]:
    return sorted(balances.items(), key=lambda item: (-item[1], item[0]))
