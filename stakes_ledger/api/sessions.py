from __future__ import annotations

from collections.abc import Callable

from fastapi import APIRouter, Depends, status

from stakes_ledger.api.errors import api_error, domain_error
from stakes_ledger.api.schemas import (
    BankerRequest,
    CreateSessionRequest,
    EditRoundRequest,
    PlayerTotalView,
    PlayerUpdateRequest,
    RoundView,
    SessionView,
    SetupRequest,
    TotalsResponse,
)
from stakes_ledger.domain import (
    BankerSetup,
    DomainValidationError,
    GameSetup,
    GameVariant,
    LadderSetup,
    PotSetup,
    dump_players,
    dump_setup,
    load_players,
)
from stakes_ledger.runtime import get_service
from stakes_ledger.service import LedgerService, OpenSession

router = APIRouter(prefix="/sessions", tags=["sessions"])

# fields where an explicit null means "clear the selection"
_CLEARABLE_FIELDS = {"position", "result", "win_type"}


def session_view(opened: OpenSession) -> SessionView:
    state = opened.state
    return SessionView(
        key=opened.key,
        session_id=state.session_id,
        account_id=opened.account_id,
        session_name=opened.session_name,
        variant=state.variant,
        phase=state.phase.value,
        calculated=state.calculated,
        setup=dump_setup(state.current_setup),
        players=dump_players(state.current_players),
        rounds=[
            RoundView(
                id=round_.id,
                timestamp=round_.timestamp,
                setup=dump_setup(round_.setup),
                players=dump_players(round_.players),
            )
            for round_ in state.ledger.rounds
        ],
        totals=[
            PlayerTotalView(id=total.id, name=total.name, total=total.total)
            for total in state.ledger.aggregate_totals()
        ],
    )


def _run(command: Callable[[], OpenSession]) -> SessionView:
    try:
        opened = command()
    except DomainValidationError as exc:
        raise domain_error(exc) from exc
    return session_view(opened)


def _build_setup(variant: GameVariant, payload: SetupRequest) -> GameSetup:
    if variant == GameVariant.LADDER:
        return LadderSetup(
            number_of_players=payload.number_of_players,
            rule=payload.rule,
            bet_amount=payload.bet_amount,
            bet_level1=payload.bet_level1,
            bet_level2=payload.bet_level2,
        )
    if variant == GameVariant.BANKER:
        return BankerSetup(number_of_players=payload.number_of_players, banker_id=payload.banker_id)
    return PotSetup(
        number_of_players=payload.number_of_players,
        default_bet=payload.default_bet,
        jackpot_bet=payload.jackpot_bet,
    )


@router.post(
    "",
    response_model=SessionView,
    status_code=status.HTTP_201_CREATED,
    summary="Open a new session",
)
def create_session(payload: CreateSessionRequest, service: LedgerService = Depends(get_service)) -> SessionView:
    return _run(lambda: service.create_session(payload.variant, payload.account_id, payload.session_name))


@router.get("/{key}", response_model=SessionView, summary="Current state of an open session")
def get_session(key: str, service: LedgerService = Depends(get_service)) -> SessionView:
    return _run(lambda: service.get_session(key))


@router.delete("/{key}", status_code=status.HTTP_204_NO_CONTENT, summary="Save and close an open session")
def close_session(key: str, service: LedgerService = Depends(get_service)) -> None:
    try:
        service.close_session(key)
    except DomainValidationError as exc:
        raise domain_error(exc) from exc


@router.post("/{key}/setup", response_model=SessionView, summary="Configure the players of the session")
def submit_setup(key: str, payload: SetupRequest, service: LedgerService = Depends(get_service)) -> SessionView:
    def command() -> OpenSession:
        opened = service.get_session(key)
        return service.submit_setup(key, _build_setup(opened.state.variant, payload))

    return _run(command)


@router.patch("/{key}/players/{player_id}", response_model=SessionView, summary="Change a player's round input")
def update_player(
    key: str,
    player_id: int,
    payload: PlayerUpdateRequest,
    service: LedgerService = Depends(get_service),
) -> SessionView:
    changes = {
        name: getattr(payload, name)
        for name in payload.model_fields_set
        if getattr(payload, name) is not None or name in _CLEARABLE_FIELDS
    }
    if not changes:
        raise api_error(code="empty_update", message="nothing to change", details={"player_id": player_id})
    return _run(lambda: service.update_player(key, player_id, changes))


@router.post("/{key}/banker", response_model=SessionView, summary="Hand the bank to another player")
def designate_banker(key: str, payload: BankerRequest, service: LedgerService = Depends(get_service)) -> SessionView:
    return _run(lambda: service.designate_banker(key, payload.player_id))


@router.post("/{key}/calculate", response_model=SessionView, summary="Settle the current round")
def calculate(key: str, service: LedgerService = Depends(get_service)) -> SessionView:
    return _run(lambda: service.calculate(key))


@router.post("/{key}/new-round", response_model=SessionView, summary="Start the next round")
def new_round(key: str, service: LedgerService = Depends(get_service)) -> SessionView:
    return _run(lambda: service.new_round(key))


@router.post("/{key}/undo", response_model=SessionView, summary="Remove the latest round")
def undo(key: str, service: LedgerService = Depends(get_service)) -> SessionView:
    return _run(lambda: service.undo(key))


@router.post("/{key}/reset", response_model=SessionView, summary="Go back to player setup, keeping history")
def reset(key: str, service: LedgerService = Depends(get_service)) -> SessionView:
    return _run(lambda: service.reset(key))


@router.put("/{key}/rounds/{round_id}", response_model=SessionView, summary="Edit a settled round")
def edit_round(
    key: str,
    round_id: int,
    payload: EditRoundRequest,
    service: LedgerService = Depends(get_service),
) -> SessionView:
    def command() -> OpenSession:
        variant = service.get_session(key).state.variant
        players = load_players(variant, [player.model_dump(mode="json") for player in payload.players])
        return service.edit_round(key, round_id, list(players))

    return _run(command)


@router.delete("/{key}/rounds/{round_id}", response_model=SessionView, summary="Delete a settled round")
def delete_round(key: str, round_id: int, service: LedgerService = Depends(get_service)) -> SessionView:
    return _run(lambda: service.delete_round(key, round_id))


@router.get("/{key}/totals", response_model=TotalsResponse, summary="Running totals and who pays whom")
def totals(key: str, service: LedgerService = Depends(get_service)) -> TotalsResponse:
    try:
        player_totals, transfers = service.totals(key)
    except DomainValidationError as exc:
        raise domain_error(exc) from exc
    return TotalsResponse(
        totals=[PlayerTotalView(id=total.id, name=total.name, total=total.total) for total in player_totals],
        transfers=transfers,
    )


@router.post("/{key}/save", response_model=SessionView, summary="Save the session right away")
def save(key: str, service: LedgerService = Depends(get_service)) -> SessionView:
    try:
        service.save_now(key)
    except DomainValidationError as exc:
        raise domain_error(exc) from exc
    except Exception as exc:
        raise api_error(
            code="save_failed",
            message="session could not be saved",
            details={"key": key},
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        ) from exc
    return _run(lambda: service.get_session(key))
