"""
Bracket Service

Turns a sport's flat match rows into rounds of seeds for display.

Rules:
- Input rows are ordered round_id DESC, match_order ASC (the read below
  guarantees it); rounds are emitted in first-appearance order
- Unset team slots (or teams without a club) show as "TBD"
- A seed is "completed" only when both scores are positive and differ
- Unknown round_ids never raise; they get a "Round <n>" title
"""
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from league_engine.orm.bracket import Match, RoundLabel, Team
from league_engine.schemas.bracket import BracketRound, Seed, SeedTeam, TournamentStats

logger = logging.getLogger(__name__)

TBD = "TBD"
STATUS_COMPLETED = "completed"
STATUS_SCHEDULED = "scheduled"


def seed_status(team1_score: Optional[int], team2_score: Optional[int]) -> str:
    score1 = team1_score or 0
    score2 = team2_score or 0
    if score1 > 0 and score2 > 0 and score1 != score2:
        return STATUS_COMPLETED
    return STATUS_SCHEDULED


def _seed_team(team_id: Optional[int], team: Optional[Team]) -> SeedTeam:
    if team_id is None or team is None:
        return SeedTeam(id=team_id, name=TBD)
    return SeedTeam(id=team_id, name=team.display_name or TBD, seed=team.seed_number)


def match_to_seed(match: Match) -> Seed:
    return Seed(
        id=match.match_id,
        teams=[
            _seed_team(match.team1_id, match.team1),
            _seed_team(match.team2_id, match.team2),
        ],
        score=[match.team1_score or 0, match.team2_score or 0],
        date=match.start_time.isoformat() if match.start_time else TBD,
        status=seed_status(match.team1_score, match.team2_score),
        parent_match1_id=match.parent_match1_id,
        parent_match2_id=match.parent_match2_id,
        round_id=match.round_id,
        match_order=match.match_order,
    )


def build_bracket(matches: Iterable[Match]) -> List[BracketRound]:
    """
    Group matches into rounds.

    Args:
        matches: Match rows sorted by round_id DESC, match_order ASC

    Returns:
        One BracketRound per distinct round_id, seeds ordered by match_order
    """
    grouped: Dict[Optional[int], List[Seed]] = {}
    for match in matches:
        grouped.setdefault(match.round_id, []).append(match_to_seed(match))

    rounds = []
    for round_id, seeds in grouped.items():
        if RoundLabel.from_round_id(round_id) is RoundLabel.UNKNOWN:
            logger.warning(f"Unmapped round_id {round_id}; using fallback title")
        seeds.sort(key=lambda s: s.match_order if s.match_order is not None else 0)
        rounds.append(BracketRound(title=RoundLabel.title_for(round_id), seeds=seeds))
    return rounds


def calculate_tournament_stats(rounds: List[BracketRound]) -> TournamentStats:
    """
    Summarize a built bracket.

    total_teams is inferred from the last round (two teams per seed);
    current_round is the last round, scanning backwards, that still has an
    unplayed seed.
    """
    if not rounds:
        return TournamentStats()

    total_matches = 0
    matches_played = 0
    for bracket_round in rounds:
        total_matches += len(bracket_round.seeds)
        for seed in bracket_round.seeds:
            if seed.status == STATUS_COMPLETED or seed.score[0] > 0 or seed.score[1] > 0:
                matches_played += 1

    total_teams = len(rounds[-1].seeds) * 2

    current_round = rounds[0].title
    for bracket_round in reversed(rounds):
        has_unplayed = any(
            seed.status != STATUS_COMPLETED and seed.score[0] == 0 and seed.score[1] == 0
            for seed in bracket_round.seeds
        )
        if has_unplayed:
            current_round = bracket_round.title
            break

    return TournamentStats(
        total_teams=total_teams,
        matches_played=matches_played,
        total_matches=total_matches,
        current_round=current_round,
    )


class BracketService:
    """Reads a sport's matches and builds its bracket."""

    @staticmethod
    async def get_matches_for_sport(db: AsyncSession, sport_id: int) -> List[Match]:
        result = await db.execute(
            select(Match)
            .where(Match.sport_id == sport_id)
            .order_by(Match.round_id.desc(), Match.match_order.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    @classmethod
    async def get_bracket(cls, db: AsyncSession, sport_id: int) -> Dict:
        matches = await cls.get_matches_for_sport(db, sport_id)
        rounds = build_bracket(matches)
        return {
            "rounds": rounds,
            "stats": calculate_tournament_stats(rounds),
            "total_matches": len(matches),
        }
