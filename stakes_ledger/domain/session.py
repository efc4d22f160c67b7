"""Session state machine.

A session moves between three phases:

* ``SETUP``: no players configured yet;
* ``ACTIVE``: players configured, the current round is not settled;
* ``CALCULATED``: the current round has been settled into the ledger.

Every command is a plain function taking the current :class:`SessionState` and
returning the next one. A command that fails raises and the caller keeps the
state it already had.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Tuple

from .game import (
    BankerResult,
    DomainValidationError,
    GameSetup,
    GameVariant,
    NotFoundError,
    Player,
    Position,
    WinType,
)
from .ledger import PlayerTotal, RoundLedger
from .settlement import settle
from .variants import ensure_players_match, get_variant


class SessionPhase(str, Enum):
    SETUP = "setup"
    ACTIVE = "active"
    CALCULATED = "calculated"


@dataclass(frozen=True)
class SessionState:
    variant: GameVariant
    current_setup: GameSetup | None = None
    current_players: Tuple[Player, ...] = field(default_factory=tuple)
    ledger: RoundLedger = field(default_factory=RoundLedger)
    calculated: bool = False
    session_id: int | None = None

    @property
    def phase(self) -> SessionPhase:
        if self.current_setup is None:
            return SessionPhase.SETUP
        if self.calculated:
            return SessionPhase.CALCULATED
        return SessionPhase.ACTIVE

    def player(self, player_id: int) -> Player:
        for player in self.current_players:
            if player.id == player_id:
                return player
        raise NotFoundError(f"player {player_id} not found")


def start_session(variant: GameVariant | str, session_id: int | None = None) -> SessionState:
    """Open a brand-new session with an empty history."""
    return SessionState(variant=get_variant(variant).variant, session_id=session_id)


def resume_session(
    variant: GameVariant | str,
    setup: GameSetup | None,
    players: Sequence[Player],
    ledger: RoundLedger,
    session_id: int | None = None,
) -> SessionState:
    """Rebuild a session from stored values.

    The current round counts as calculated when it is exactly the last round
    in the history, so a recalculation after reopening replaces that round.
    """
    definition = get_variant(variant)
    if setup is not None:
        ensure_players_match(definition, setup, players)
    last = ledger.last
    return SessionState(
        variant=definition.variant,
        current_setup=setup,
        current_players=tuple(players) if setup is not None else (),
        ledger=ledger,
        calculated=setup is not None and last is not None and last.players == tuple(players),
        session_id=session_id,
    )


def submit_setup(state: SessionState, setup: GameSetup) -> SessionState:
    if state.phase is not SessionPhase.SETUP:
        raise DomainValidationError("session is already configured, reset it first")
    definition = get_variant(state.variant)
    if not isinstance(setup, definition.setup_type):
        raise DomainValidationError(f"setup does not belong to variant {state.variant.value}")

    players = tuple(definition.new_player(player_id, setup) for player_id in range(1, setup.number_of_players + 1))
    return replace(state, current_setup=setup, current_players=players, calculated=False)


def rename_player(state: SessionState, player_id: int, name: str) -> SessionState:
    normalized = name.strip()
    if not normalized:
        raise DomainValidationError("player name must be non-empty")
    return _update_player(state, player_id, lambda player: replace(player, name=normalized))


def select_position(state: SessionState, player_id: int, position: Position | None) -> SessionState:
    """Give ``player_id`` a finishing position, taking it away from whoever held it."""
    _require_variant(state, GameVariant.LADDER)
    state.player(player_id)

    def assign(player: Player) -> Player:
        if player.id == player_id:
            return replace(player, position=position)
        if position is not None and player.position == position:
            return replace(player, position=None)
        return player

    return replace(state, current_players=tuple(assign(player) for player in state.current_players))


def set_adjustment(state: SessionState, player_id: int, adjustment: int) -> SessionState:
    _require_variant(state, GameVariant.LADDER)
    return _update_player(state, player_id, lambda player: replace(player, adjustment=adjustment))


def designate_banker(state: SessionState, player_id: int) -> SessionState:
    _require_variant(state, GameVariant.BANKER)
    state.player(player_id)
    players = tuple(replace(player, is_house=player.id == player_id) for player in state.current_players)
    return replace(
        state,
        current_setup=replace(state.current_setup, banker_id=player_id),
        current_players=players,
    )


def set_bet(state: SessionState, player_id: int, amount: int) -> SessionState:
    _require_variant(state, GameVariant.BANKER)
    if amount < 0:
        raise DomainValidationError("bet amount must not be negative")
    return _update_player(state, player_id, lambda player: replace(player, bet_amount=amount))


def set_result(state: SessionState, player_id: int, result: BankerResult | None) -> SessionState:
    _require_variant(state, GameVariant.BANKER)
    return _update_player(state, player_id, lambda player: replace(player, result=result))


def select_winner(state: SessionState, player_id: int, win_type: WinType | None) -> SessionState:
    """Mark ``player_id`` as the round winner; ``None`` withdraws the win."""
    _require_variant(state, GameVariant.POT)
    state.player(player_id)

    def assign(player: Player) -> Player:
        if player.id == player_id:
            return replace(player, is_winner=win_type is not None, win_type=win_type)
        if win_type is not None:
            return replace(player, is_winner=False, win_type=None)
        return player

    return replace(state, current_players=tuple(assign(player) for player in state.current_players))


def calculate(state: SessionState, now: datetime | None = None) -> SessionState:
    """Settle the current round.

    The first settlement appends a round; settling again without starting a
    new round replaces that same round, so the ledger never grows on repeats.
    """
    setup = _require_setup(state)
    settled = settle(state.variant, setup, state.current_players)
    timestamp = now or datetime.now(timezone.utc)

    if state.calculated and state.ledger.last is not None:
        ledger = state.ledger.replace_last(settled, setup, timestamp)
    else:
        ledger = state.ledger.append(settled, setup, timestamp)
    return replace(state, current_players=settled, ledger=ledger, calculated=True)


def new_round(state: SessionState) -> SessionState:
    _require_setup(state)
    return replace(state, current_players=_cleared(state, state.current_players), calculated=False)


def undo(state: SessionState) -> SessionState:
    """Drop the latest round and go back to the one before it."""
    if not state.ledger.rounds:
        return state

    ledger = state.ledger.undo()
    previous = ledger.last
    if previous is not None:
        # rounds hold frozen players, sharing the tuple is a safe copy
        return replace(
            state,
            current_setup=previous.setup,
            current_players=previous.players,
            ledger=ledger,
            calculated=False,
        )
    return replace(
        state,
        current_players=_cleared(state, state.current_players),
        ledger=ledger,
        calculated=False,
    )


def reset(state: SessionState) -> SessionState:
    """Go back to setup. The history is kept; only a new session clears it."""
    return replace(state, current_setup=None, current_players=(), calculated=False)


def edit_round(
    state: SessionState,
    round_id: int,
    players: Sequence[Player],
    now: datetime | None = None,
) -> SessionState:
    ledger = state.ledger.edit_round(round_id, players, now or datetime.now(timezone.utc))
    return replace(state, ledger=ledger)


def delete_round(state: SessionState, round_id: int) -> SessionState:
    ledger = state.ledger.delete_round(round_id)
    last = state.ledger.last
    # the current round no longer has a ledger entry to recalculate into
    calculated = state.calculated and not (last is not None and last.id == round_id)
    return replace(state, ledger=ledger, calculated=calculated)


def aggregate_totals(state: SessionState) -> list[PlayerTotal]:
    return state.ledger.aggregate_totals()


def _require_setup(state: SessionState) -> GameSetup:
    if state.current_setup is None:
        raise DomainValidationError("session has no players yet, submit a setup first")
    return state.current_setup


def _require_variant(state: SessionState, variant: GameVariant) -> None:
    _require_setup(state)
    if state.variant != variant:
        raise DomainValidationError(f"command is not available for variant {state.variant.value}")


def _update_player(state: SessionState, player_id: int, change: Callable[[Player], Player]) -> SessionState:
    _require_setup(state)
    state.player(player_id)
    return replace(
        state,
        current_players=tuple(change(player) if player.id == player_id else player for player in state.current_players),
    )


def _cleared(state: SessionState, players: Sequence[Player]) -> Tuple[Player, ...]:
    clear_inputs = get_variant(state.variant).clear_inputs
    return tuple(clear_inputs(player) for player in players)
