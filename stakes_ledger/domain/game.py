from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import ClassVar, Tuple


class DomainValidationError(ValueError):
    """Raised when a game rule is violated."""


class IncompleteInputError(DomainValidationError):
    """Raised when some players have not entered what the variant needs."""

    def __init__(self, missing_count: int) -> None:
        self.missing_count = missing_count
        super().__init__(f"{missing_count} player(s) are missing round input")


class NotFoundError(DomainValidationError):
    """Raised when a command references a round or player that does not exist."""


# upper bound for every variant; Ladder narrows it to one player per position
MAX_PLAYERS = 20


class GameVariant(str, Enum):
    LADDER = "tien-len"
    BANKER = "xi-dach"
    POT = "kach-te"


class LadderRule(str, Enum):
    WINNER_TAKES_ALL = "winner-takes-all"
    TIERED = "tiered"


class Position(str, Enum):
    NHAT = "nhat"
    NHI = "nhi"
    BA = "ba"
    BET = "bet"


class BankerResult(str, Enum):
    WIN = "win"
    LOSE = "lose"


class WinType(str, Enum):
    NORMAL = "normal"
    JACKPOT = "jackpot"


@dataclass(frozen=True)
class Player:
    id: int
    name: str
    money: int = 0


@dataclass(frozen=True)
class LadderPlayer(Player):
    position: Position | None = None
    adjustment: int = 0


@dataclass(frozen=True)
class BankerPlayer(Player):
    is_house: bool = False
    bet_amount: int = 0
    result: BankerResult | None = None


@dataclass(frozen=True)
class PotPlayer(Player):
    is_winner: bool = False
    win_type: WinType | None = None


@dataclass(frozen=True)
class GameSetup:
    variant: ClassVar[GameVariant]
    min_players: ClassVar[int] = 2
    max_players: ClassVar[int] = MAX_PLAYERS

    number_of_players: int

    def __post_init__(self) -> None:
        if self.number_of_players < self.min_players:
            raise DomainValidationError(f"at least {self.min_players} players required")
        if self.number_of_players > self.max_players:
            raise DomainValidationError(f"at most {self.max_players} players allowed")


@dataclass(frozen=True)
class LadderSetup(GameSetup):
    variant: ClassVar[GameVariant] = GameVariant.LADDER
    max_players: ClassVar[int] = len(Position)

    rule: LadderRule = LadderRule.WINNER_TAKES_ALL
    bet_amount: int = 0
    bet_level1: int = 0
    bet_level2: int = 0

    def __post_init__(self) -> None:
        super().__post_init__()
        if min(self.bet_amount, self.bet_level1, self.bet_level2) < 0:
            raise DomainValidationError("bet amounts must not be negative")
        # nhat/nhi/ba/bet must all be taken for the two pairwise transfers
        if self.rule == LadderRule.TIERED and self.number_of_players != len(Position):
            raise DomainValidationError(f"tiered rule requires exactly {len(Position)} players")


@dataclass(frozen=True)
class BankerSetup(GameSetup):
    variant: ClassVar[GameVariant] = GameVariant.BANKER

    banker_id: int = 1

    def __post_init__(self) -> None:
        super().__post_init__()
        if not 1 <= self.banker_id <= self.number_of_players:
            raise DomainValidationError(f"banker must be one of players 1..{self.number_of_players}")


@dataclass(frozen=True)
class PotSetup(GameSetup):
    variant: ClassVar[GameVariant] = GameVariant.POT

    default_bet: int = 0
    jackpot_bet: int = 0

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.default_bet < 0 or self.jackpot_bet < 0:
            raise DomainValidationError("bet amounts must not be negative")


@dataclass(frozen=True)
class Round:
    id: int
    players: Tuple[Player, ...]
    setup: GameSetup
    timestamp: datetime

    def __post_init__(self) -> None:
        if len(self.players) != self.setup.number_of_players:
            raise DomainValidationError("round must hold one snapshot per configured player")
        object.__setattr__(self, "players", tuple(self.players))


def default_player_name(player_id: int) -> str:
    return f"Player {player_id}"
