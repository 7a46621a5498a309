"""
Admin routes: review the roster-change ledger and apply changes directly.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from league_engine.config.feature_flags import feature_flags
from league_engine.database import get_db
from league_engine.errors import ErrorCode
from league_engine.exceptions import ForbiddenError
from league_engine.orm.roster_requests import RequestStatus, RequestType
from league_engine.schemas.roster_changes import AdminPlayerChange, LedgerApproval, LedgerRejection
from league_engine.services.request_ledger_service import RequestLedger
from league_engine.services.roster_context_service import RosterContextService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


def check_direct_changes_enabled():
    """Check if admin-direct changes are enabled."""
    if not feature_flags.FEATURE_ADMIN_DIRECT_CHANGES:
        raise ForbiddenError("Admin direct changes are disabled", ErrorCode.FEATURE_DISABLED)


# =============================================================================
# Replacements
# =============================================================================

@router.get("/replacements")
async def list_replacements(
    club_id: Optional[int] = Query(None),
    status: Optional[RequestStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    requests = await RequestLedger.list_requests(db, RequestType.REPLACEMENT, club_id, status)
    return {"success": True, "data": requests}


@router.get("/replacements/{request_id}")
async def get_replacement(
    request_id: int,
    db: AsyncSession = Depends(get_db),
):
    """One replacement request with the incoming and outgoing player."""
    entry = await RequestLedger.get_request(db, RequestType.REPLACEMENT, request_id)
    return {"success": True, "data": entry}


@router.post("/replacements/approve")
async def approve_replacement(
    request: LedgerApproval,
    db: AsyncSession = Depends(get_db),
):
    """
    Approve a pending replacement.
    Creates the player if needed and repoints the registration.
    """
    entry = await RequestLedger.approve(db, RequestType.REPLACEMENT, request.request_id, request.approved_by)
    return {"success": True, "data": entry, "message": "Replacement request approved successfully"}


@router.post("/replacements/reject")
async def reject_replacement(
    request: LedgerRejection,
    db: AsyncSession = Depends(get_db),
):
    entry = await RequestLedger.reject(db, RequestType.REPLACEMENT, request.request_id, request.rejected_by)
    return {"success": True, "data": entry, "message": "Replacement request rejected successfully"}


# =============================================================================
# Swaps and moves
# =============================================================================

@router.get("/swaps")
async def list_swaps(
    club_id: Optional[int] = Query(None),
    status: Optional[RequestStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    requests = await RequestLedger.list_requests(db, RequestType.SWAP, club_id, status)
    return {"success": True, "data": requests}


@router.get("/swaps/{request_id}")
async def get_swap(
    request_id: int,
    db: AsyncSession = Depends(get_db),
):
    entry = await RequestLedger.get_request(db, RequestType.SWAP, request_id)
    return {"success": True, "data": entry}


@router.post("/swaps/approve")
async def approve_swap(
    request: LedgerApproval,
    db: AsyncSession = Depends(get_db),
):
    entry = await RequestLedger.approve(db, RequestType.SWAP, request.request_id, request.approved_by)
    return {"success": True, "data": entry, "message": "Swap approved successfully"}


@router.post("/swaps/reject")
async def reject_swap(
    request: LedgerRejection,
    db: AsyncSession = Depends(get_db),
):
    entry = await RequestLedger.reject(db, RequestType.SWAP, request.request_id, request.rejected_by)
    return {"success": True, "data": entry, "message": "Swap rejected successfully"}


# =============================================================================
# Admin-direct changes
# =============================================================================

@router.get("/player-changes")
async def get_player_change_context(
    club_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Club roster with both request ledgers and every sport."""
    context = await RosterContextService.get_club_context(db, club_id, None, include_all_sports=True)
    return {"success": True, "data": context}


@router.post("/player-changes")
async def apply_player_change(
    request: AdminPlayerChange,
    db: AsyncSession = Depends(get_db),
):
    """
    Apply a replacement, swap or move immediately.

    The change and its already-approved ledger entry are written together;
    no pending request is ever created.
    """
    check_direct_changes_enabled()

    change = request.to_change()
    entry = await RequestLedger.submit(
        db,
        change,
        actor_id=request.admin_id,
        auto_approve=True,
        actor_name=request.admin_name,
    )
    logger.info(f"Admin {request.admin_id} applied {request.action} (request {entry['id']})")
    return {"success": True, "data": entry, "message": f"{request.action.capitalize()} completed and approved by admin"}
