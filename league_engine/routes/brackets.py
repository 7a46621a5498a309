"""
Bracket routes: read a sport's bracket, enter scores, and stream match
change signals.
"""
import asyncio
import contextlib
import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession

from league_engine.database import get_db
from league_engine.realtime.match_feed import match_feed
from league_engine.schemas.bracket import ScoreSubmission
from league_engine.services.bracket_service import BracketService
from league_engine.services.winner_advancement_service import WinnerAdvancementService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/brackets", tags=["Brackets"])


@router.get("")
async def get_bracket(
    sport_id: int = Query(..., description="Sport whose bracket to build"),
    db: AsyncSession = Depends(get_db),
):
    """
    Build the bracket for a sport.

    Rounds come out in the order their round_id first appears (highest
    round_id first); seeds use camelCase keys.
    """
    bracket = await BracketService.get_bracket(db, sport_id)
    return {
        "success": True,
        "data": [r.model_dump(by_alias=True) for r in bracket["rounds"]],
        "stats": bracket["stats"].model_dump(),
        "total_matches": bracket["total_matches"],
    }


@router.post("")
async def submit_score(
    request: ScoreSubmission,
    db: AsyncSession = Depends(get_db),
):
    """
    Enter a match result. The winner, if any, is advanced into the matches
    this one feeds.
    """
    result = await WinnerAdvancementService.submit_score(
        db=db,
        match_id=request.match_id,
        score1=request.team1_score,
        score2=request.team2_score,
    )
    return {"success": True, "data": result.model_dump()}


async def forward_changes(websocket: WebSocket, sport_id: int):
    async for message in match_feed.subscribe(sport_id):
        await websocket.send_json(message)


@router.websocket("/ws/{sport_id}")
async def bracket_changes(websocket: WebSocket, sport_id: int):
    """
    Push a signal every time a match of the sport changes.

    Client messages are read only to notice the disconnect. Clients re-fetch
    the bracket on each signal.
    """
    await websocket.accept()
    await websocket.send_json({"event": "subscribed", "sport_id": sport_id})

    forwarder = asyncio.create_task(forward_changes(websocket, sport_id))
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"Bracket viewer for sport {sport_id} disconnected")
    finally:
        # unregisters the viewer's queue
        forwarder.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await forwarder
