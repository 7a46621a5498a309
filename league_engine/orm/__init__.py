from .base import Base

from .club import Club
from .sport import Sport, SportType, GenderType
from .player import Player, ReplacementPlayer
from .registration import Registration
from .bracket import Team, Match, RoundLabel
from .roster_requests import ReplacementRequest, SwapRequest, RequestType, RequestStatus

__all__ = [
    "Base",
    "Club",
    "Sport", "SportType", "GenderType",
    "Player", "ReplacementPlayer",
    "Registration",
    "Team", "Match", "RoundLabel",
    "ReplacementRequest", "SwapRequest", "RequestType", "RequestStatus",
]
