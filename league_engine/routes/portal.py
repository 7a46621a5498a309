"""
Club officer routes for roster-change requests.

Submissions here only record a pending request; an admin approves or
rejects it later.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from league_engine.database import get_db
from league_engine.orm.roster_requests import RequestType
from league_engine.schemas.roster_changes import ReplacementChange, SwapChange
from league_engine.services.request_ledger_service import RequestLedger
from league_engine.services.roster_context_service import RosterContextService

router = APIRouter(prefix="/portal", tags=["Portal"])


@router.get("/replacements")
async def get_replacement_context(
    club_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Club sports, registrations and replacement requests."""
    context = await RosterContextService.get_club_context(db, club_id, RequestType.REPLACEMENT)
    return {"success": True, "data": context}


@router.post("/replacements")
async def submit_replacement(
    request: ReplacementChange,
    db: AsyncSession = Depends(get_db),
):
    """
    Request a player replacement.

    Validations:
    - Reason present, supporting link https only
    - RI number for general members
    - No other pending replacement for the registration
    - Replacement fits the sport's gender and day limits
    """
    entry = await RequestLedger.submit(db, request, actor_id=request.requested_by, auto_approve=False)
    return {"success": True, "data": entry, "message": "Replacement request submitted successfully"}


@router.get("/swaps")
async def get_swap_context(
    club_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Club sports, registrations, swap requests and every sport as a move destination."""
    context = await RosterContextService.get_club_context(
        db, club_id, RequestType.SWAP, include_all_sports=True
    )
    return {"success": True, "data": context}


@router.post("/swaps")
async def submit_swap(
    request: SwapChange,
    db: AsyncSession = Depends(get_db),
):
    """
    Request a swap (player2_registrations_id) or a move (sport2_id).

    Also refuses changes that would give a player two sports on one day.
    """
    entry = await RequestLedger.submit(db, request, actor_id=request.requested_by, auto_approve=False)
    return {"success": True, "data": entry, "message": f"{request.request_type.value.capitalize()} request submitted successfully"}
