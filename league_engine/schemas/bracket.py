"""
Bracket display and score-entry schemas.

Seeds serialize with camelCase keys (parentMatch1Id, roundId, ...) for the
bracket widget; use model_dump(by_alias=True).
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SeedTeam(BaseModel):
    id: Optional[int] = None
    name: str = "TBD"
    seed: Optional[int] = None


class Seed(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    teams: List[SeedTeam]
    score: List[int]
    date: str
    status: str
    parent_match1_id: Optional[int] = Field(None, alias="parentMatch1Id")
    parent_match2_id: Optional[int] = Field(None, alias="parentMatch2Id")
    round_id: Optional[int] = Field(None, alias="roundId")
    match_order: Optional[int] = Field(None, alias="matchOrder")


class BracketRound(BaseModel):
    title: str
    seeds: List[Seed]


class TournamentStats(BaseModel):
    total_teams: int = 0
    matches_played: int = 0
    total_matches: int = 0
    current_round: str = "No matches"


class ScoreSubmission(BaseModel):
    """Request to enter a match result."""
    match_id: int = Field(..., description="Match being scored")
    team1_score: int = Field(..., ge=0, description="Score of the team in slot 1")
    team2_score: int = Field(..., ge=0, description="Score of the team in slot 2")


class ScoreResult(BaseModel):
    match_id: int
    sport_id: int
    team1_score: int
    team2_score: int
    winner_id: Optional[int] = None
    outcome: str
    advanced_to: List[int] = Field(default_factory=list)
    failed_parents: List[int] = Field(default_factory=list)
