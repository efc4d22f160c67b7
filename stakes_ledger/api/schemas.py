from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from stakes_ledger.domain import MAX_PLAYERS, BankerResult, GameVariant, LadderRule, Position, WinType


class CreateSessionRequest(BaseModel):
    variant: GameVariant = Field(..., examples=["tien-len"])
    account_id: int = Field(..., ge=1, examples=[1])
    session_name: str | None = Field(default=None, max_length=128)


class SetupRequest(BaseModel):
    number_of_players: int = Field(..., ge=2, le=MAX_PLAYERS, examples=[4])
    rule: LadderRule = Field(
        default=LadderRule.WINNER_TAKES_ALL,
        description="Ladder only: winner-takes-all or tiered",
    )
    bet_amount: int = Field(default=0, ge=0, description="Ladder, winner-takes-all")
    bet_level1: int = Field(default=0, ge=0, description="Ladder, tiered: last pays first")
    bet_level2: int = Field(default=0, ge=0, description="Ladder, tiered: third pays second")
    banker_id: int = Field(default=1, ge=1, description="Banker only")
    default_bet: int = Field(default=0, ge=0, description="Pot only")
    jackpot_bet: int = Field(default=0, ge=0, description="Pot only")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"number_of_players": 3, "rule": "winner-takes-all", "bet_amount": 10000},
                {"number_of_players": 3, "banker_id": 1},
                {"number_of_players": 4, "default_bet": 2000, "jackpot_bet": 5000},
            ]
        }
    }


class PlayerUpdateRequest(BaseModel):
    """Only the fields present in the request are applied; ``null`` clears a selection."""

    name: str | None = Field(default=None, min_length=1, max_length=64)
    position: Position | None = None
    adjustment: int | None = None
    bet_amount: int | None = Field(default=None, ge=0)
    result: BankerResult | None = None
    win_type: WinType | None = None


class BankerRequest(BaseModel):
    player_id: int = Field(..., ge=1)


class PlayerInput(BaseModel):
    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=64)
    position: Position | None = None
    adjustment: int = 0
    is_house: bool = False
    bet_amount: int = Field(default=0, ge=0)
    result: BankerResult | None = None
    is_winner: bool = False
    win_type: WinType | None = None


class EditRoundRequest(BaseModel):
    players: list[PlayerInput] = Field(..., min_length=2)


class RoundView(BaseModel):
    id: int
    timestamp: datetime
    setup: dict[str, Any]
    players: list[dict[str, Any]]


class PlayerTotalView(BaseModel):
    id: int
    name: str
    total: int


class SessionView(BaseModel):
    key: str
    session_id: int | None = None
    account_id: int
    session_name: str
    variant: GameVariant
    phase: str
    calculated: bool
    setup: dict[str, Any] | None = None
    players: list[dict[str, Any]]
    rounds: list[RoundView]
    totals: list[PlayerTotalView]


class TotalsResponse(BaseModel):
    totals: list[PlayerTotalView]
    transfers: list[dict[str, int]]


class SavedSessionView(BaseModel):
    id: int
    session_name: str
    last_updated: datetime
