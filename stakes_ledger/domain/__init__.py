from .codec import (
    dump_history,
    dump_players,
    dump_setup,
    load_history,
    load_players,
    load_setup,
)
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
    MAX_PLAYERS,
    NotFoundError,
    Player,
    Position,
    PotPlayer,
    PotSetup,
    Round,
    WinType,
)
from .ledger import PlayerTotal, RoundLedger
from .session import SessionPhase, SessionState
from .settlement import build_transfers, settle
from .variants import VARIANTS, VariantDefinition, get_variant

__all__ = [
    "BankerPlayer",
    "BankerResult",
    "BankerSetup",
    "DomainValidationError",
    "GameSetup",
    "GameVariant",
    "IncompleteInputError",
    "LadderPlayer",
    "LadderRule",
    "LadderSetup",
    "MAX_PLAYERS",
    "NotFoundError",
    "Player",
    "PlayerTotal",
    "Position",
    "PotPlayer",
    "PotSetup",
    "Round",
    "RoundLedger",
    "SessionPhase",
    "SessionState",
    "VARIANTS",
    "VariantDefinition",
    "build_transfers",
    "dump_history",
    "dump_players",
    "dump_setup",
    "get_variant",
    "load_history",
    "load_players",
    "load_setup",
    "settle",
]
