from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Tuple

from .game import DomainValidationError, GameSetup, NotFoundError, Player, Round
from .settlement import settle


@dataclass(frozen=True)
class PlayerTotal:
    id: int
    name: str
    total: int


@dataclass(frozen=True)
class RoundLedger:
    """Ordered history of settled rounds.

    The ledger is a value: every operation returns a new ledger and leaves the
    receiver untouched. Rounds are never reordered.
    """

    rounds: Tuple[Round, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.rounds)

    @property
    def last(self) -> Round | None:
        return self.rounds[-1] if self.rounds else None

    def next_round_id(self) -> int:
        # max + 1 stays unique after deletions, unlike len + 1
        return max((round_.id for round_ in self.rounds), default=0) + 1

    def get(self, round_id: int) -> Round:
        for round_ in self.rounds:
            if round_.id == round_id:
                return round_
        raise NotFoundError(f"round {round_id} not found")

    def append(self, players: Sequence[Player], setup: GameSetup, timestamp: datetime) -> RoundLedger:
        new_round = Round(id=self.next_round_id(), players=tuple(players), setup=setup, timestamp=timestamp)
        return replace(self, rounds=self.rounds + (new_round,))

    def replace_last(self, players: Sequence[Player], setup: GameSetup, timestamp: datetime) -> RoundLedger:
        """Overwrite the latest round with a recomputation of the same round."""
        if not self.rounds:
            raise NotFoundError("ledger has no rounds to recalculate")
        updated = replace(self.rounds[-1], players=tuple(players), setup=setup, timestamp=timestamp)
        return replace(self, rounds=self.rounds[:-1] + (updated,))

    def undo(self) -> RoundLedger:
        return replace(self, rounds=self.rounds[:-1])

    def edit_round(self, round_id: int, players: Sequence[Player], timestamp: datetime) -> RoundLedger:
        """Re-settle one round against the setup it was originally played with."""
        target = self.get(round_id)
        if sorted(player.id for player in players) != sorted(player.id for player in target.players):
            raise DomainValidationError(f"round {round_id} must be edited with the same players")
        settled = settle(target.setup.variant, target.setup, players)
        updated = replace(target, players=settled, timestamp=timestamp)
        return replace(
            self,
            rounds=tuple(updated if round_.id == round_id else round_ for round_ in self.rounds),
        )

    def delete_round(self, round_id: int) -> RoundLedger:
        self.get(round_id)
        return replace(self, rounds=tuple(round_ for round_ in self.rounds if round_.id != round_id))

    def aggregate_totals(self) -> list[PlayerTotal]:
        totals: dict[int, int] = {}
        names: dict[int, str] = {}
        for round_ in self.rounds:
            for player in round_.players:
                totals[player.id] = totals.get(player.id, 0) + player.money
                names[player.id] = player.name
        return [PlayerTotal(id=player_id, name=names[player_id], total=totals[player_id]) for player_id in sorted(totals)]
