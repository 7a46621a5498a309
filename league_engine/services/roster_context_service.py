"""
Roster context for a club: its sports, who is registered where, and the
club's roster-change requests. Feeds the replacement and swap screens.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from league_engine.orm.registration import Registration
from league_engine.orm.roster_requests import RequestType
from league_engine.orm.sport import Sport
from league_engine.services.request_ledger_service import RequestLedger

logger = logging.getLogger(__name__)


def _sport_summary(sport: Sport) -> Dict[str, Any]:
    return {
        "sport_id": sport.sport_id,
        "sport_name": sport.sport_name,
        "sport_type": sport.sport_type,
        "gender_type": sport.gender_type,
        "sport_day": sport.sport_day,
        "category": sport.category,
        "max_count": sport.max_count,
    }


def _registration_entry(registration: Registration) -> Dict[str, Any]:
    entry = registration.to_dict()
    entry["player"] = registration.player.to_dict() if registration.player else None
    return entry


def _main_players_first(entry: Dict[str, Any]):
    player = entry.get("player") or {}
    return (not entry["main_player"], (player.get("name") or "").lower())


def group_registrations(registrations: List[Registration]) -> Dict[str, Any]:
    """
    Index a club's registrations.

    Returns sports sorted by name, registrations per sport with main players
    first and then by name, and each player's registrations keyed by rmis_id.
    """
    sports: Dict[int, Dict[str, Any]] = {}
    sport_registrations: Dict[int, List[Dict[str, Any]]] = {}
    player_registration_map: Dict[str, List[Dict[str, Any]]] = {}

    for registration in registrations:
        sport = registration.sport
        if sport is not None:
            sports.setdefault(sport.sport_id, _sport_summary(sport))
            sport_registrations.setdefault(sport.sport_id, []).append(_registration_entry(registration))

        if registration.player is not None:
            schedule = player_registration_map.setdefault(registration.rmis_id, [])
            if sport is not None:
                schedule.append({
                    "registration_id": registration.id,
                    "sport_id": sport.sport_id,
                    "sport_name": sport.sport_name,
                    "sport_type": sport.sport_type,
                    "sport_day": sport.sport_day,
                    "main_player": registration.main_player,
                })

    for entries in sport_registrations.values():
        entries.sort(key=_main_players_first)

    return {
        "sports": sorted(sports.values(), key=lambda s: (s["sport_name"] or "").lower()),
        "sport_registrations": sport_registrations,
        "player_registration_map": player_registration_map,
    }


class RosterContextService:

    @staticmethod
    async def get_club_registrations(db: AsyncSession, club_id: int) -> List[Registration]:
        result = await db.execute(
            select(Registration)
            .where(Registration.club_id == club_id)
            .order_by(Registration.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_all_sports(db: AsyncSession) -> List[Dict[str, Any]]:
        result = await db.execute(select(Sport).order_by(Sport.sport_name))
        return [_sport_summary(sport) for sport in result.scalars().all()]

    @classmethod
    async def get_club_context(
        cls,
        db: AsyncSession,
        club_id: int,
        request_type: Optional[RequestType] = RequestType.REPLACEMENT,
        include_all_sports: bool = False,
    ) -> Dict[str, Any]:
        """
        Build the roster view for one club.

        request_type picks which ledger's requests are attached (None attaches
        both); include_all_sports adds every sport as move destinations.
        """
        registrations = await cls.get_club_registrations(db, club_id)
        context = group_registrations(registrations)

        if request_type is None:
            context["requests"] = {
                RequestType.REPLACEMENT.value: await RequestLedger.list_requests(db, RequestType.REPLACEMENT, club_id),
                RequestType.SWAP.value: await RequestLedger.list_requests(db, RequestType.SWAP, club_id),
            }
        else:
            context["requests"] = await RequestLedger.list_requests(db, request_type, club_id)

        if include_all_sports:
            context["all_sports"] = await cls.get_all_sports(db)

        logger.debug(f"Built roster context for club {club_id}: {len(registrations)} registrations")
        return context
