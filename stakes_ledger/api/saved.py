from fastapi import APIRouter, Depends, Query, status

from stakes_ledger.api.errors import domain_error
from stakes_ledger.api.schemas import SavedSessionView, SessionView
from stakes_ledger.api.sessions import session_view
from stakes_ledger.domain import DomainValidationError, GameVariant
from stakes_ledger.runtime import get_service
from stakes_ledger.service import LedgerService

router = APIRouter(prefix="/saved-sessions", tags=["saved-sessions"])


@router.get("", response_model=list[SavedSessionView], summary="Saved sessions of an account for one game")
def list_saved(
    account_id: int = Query(..., ge=1),
    game_type: GameVariant = Query(...),
    service: LedgerService = Depends(get_service),
) -> list[SavedSessionView]:
    return [
        SavedSessionView(id=summary.id, session_name=summary.session_name, last_updated=summary.last_updated)
        for summary in service.list_saved(account_id, game_type)
    ]


@router.post("/{session_id}/open", response_model=SessionView, summary="Reopen a saved session")
def open_saved(session_id: int, service: LedgerService = Depends(get_service)) -> SessionView:
    try:
        opened = service.open_saved(session_id)
    except DomainValidationError as exc:
        raise domain_error(exc) from exc
    return session_view(opened)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a saved session")
def delete_saved(session_id: int, service: LedgerService = Depends(get_service)) -> None:
    service.delete_saved(session_id)
