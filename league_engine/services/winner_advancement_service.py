"""
Winner Advancement Service

Records a match result and pushes the winner into the matches it feeds.

State per match: unscored → scored (undetermined) → scored (decided).

Rules:
- Both team slots must be filled before a score is accepted
- A draw, or any zero score, decides nothing and propagates nothing
- The score write is committed before propagation starts
- Each feeding write is committed on its own; a failure is logged and
  skipped and never fails the score submission
- Re-submitting the same scores leaves the same final state
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, update, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from league_engine.config.feature_flags import feature_flags
from league_engine.errors import ErrorCode
from league_engine.exceptions import NotFoundError, ValidationError, PersistenceError
from league_engine.orm.bracket import Match
from league_engine.realtime.match_feed import match_feed
from league_engine.schemas.bracket import ScoreResult

logger = logging.getLogger(__name__)

OUTCOME_UNDETERMINED = "undetermined"
OUTCOME_DECIDED = "decided"


def determine_winner(team1_id: Optional[int], team2_id: Optional[int], score1: int, score2: int) -> Optional[int]:
    """Winner's team id, or None for a draw or when either score is zero."""
    if score1 == score2 or score1 == 0 or score2 == 0:
        return None
    return team1_id if score1 > score2 else team2_id


def slot_updates_for_parent(target_id: int, parent_match1_id: Optional[int], parent_match2_id: Optional[int], winner_id: int) -> dict:
    """
    Columns to set on a match fed by target_id. Both slots are checked
    independently, so a match naming target_id twice gets the winner twice.
    """
    values = {}
    if parent_match1_id == target_id:
        values["team1_id"] = winner_id
    if parent_match2_id == target_id:
        values["team2_id"] = winner_id
    return values


class WinnerAdvancementService:

    @staticmethod
    async def _find_fed_matches(db: AsyncSession, sport_id: int, match_id: int) -> List[Tuple[int, Optional[int], Optional[int]]]:
        result = await db.execute(
            select(Match.match_id, Match.parent_match1_id, Match.parent_match2_id)
            .where(
                Match.sport_id == sport_id,
                or_(
                    Match.parent_match1_id == match_id,
                    Match.parent_match2_id == match_id,
                ),
            )
            .order_by(Match.match_id)
        )
        return [tuple(row) for row in result.all()]

    @classmethod
    async def submit_score(cls, db: AsyncSession, match_id: int, score1: int, score2: int) -> ScoreResult:
        """
        Enter a match result and advance the winner.

        Raises:
            NotFoundError: match does not exist
            ValidationError: negative score, or a team slot is still TBD
            PersistenceError: the score itself could not be written
        """
        if score1 is None or score2 is None or score1 < 0 or score2 < 0:
            raise ValidationError("Scores must be non-negative integers", ErrorCode.NEGATIVE_SCORE)

        result = await db.execute(select(Match).where(Match.match_id == match_id))
        match = result.scalar_one_or_none()
        if not match:
            raise NotFoundError("Match", match_id, ErrorCode.MATCH_NOT_FOUND)

        if match.team1_id is None or match.team2_id is None:
            raise ValidationError(
                "Both teams must be set before scores can be entered",
                ErrorCode.TEAMS_NOT_SET,
                {"match_id": match_id},
            )

        sport_id = match.sport_id
        team1_id, team2_id = match.team1_id, match.team2_id

        try:
            match.team1_score = score1
            match.team2_score = score2
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to update scores for match {match_id}: {str(e)}")
            raise PersistenceError("Failed to update match", ErrorCode.PERSISTENCE_ERROR)

        logger.info(f"Match {match_id} scored {score1}-{score2}")
        await match_feed.publish(sport_id, "match_updated", match_id)

        score_result = ScoreResult(
            match_id=match_id,
            sport_id=sport_id,
            team1_score=score1,
            team2_score=score2,
            outcome=OUTCOME_UNDETERMINED,
        )

        winner_id = determine_winner(team1_id, team2_id, score1, score2)
        if winner_id is None:
            logger.info(f"Match {match_id} has no winner yet; nothing to advance")
            return score_result

        score_result.winner_id = winner_id
        score_result.outcome = OUTCOME_DECIDED

        if not feature_flags.FEATURE_WINNER_ADVANCEMENT:
            return score_result

        try:
            fed_matches = await cls._find_fed_matches(db, sport_id, match_id)
        except SQLAlchemyError as e:
            logger.error(f"Error finding matches fed by {match_id}: {str(e)}")
            return score_result

        for fed_match_id, parent1, parent2 in fed_matches:
            values = slot_updates_for_parent(match_id, parent1, parent2, winner_id)
            if not values:
                continue
            try:
                await db.execute(
                    update(Match)
                    .where(Match.match_id == fed_match_id)
                    .values(**values)
                    .execution_options(synchronize_session="fetch")
                )
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"Error advancing winner {winner_id} to match {fed_match_id}: {str(e)}")
                score_result.failed_parents.append(fed_match_id)
                continue

            logger.info(f"Advanced winner (team {winner_id}) from match {match_id} to match {fed_match_id}")
            score_result.advanced_to.append(fed_match_id)
            await match_feed.publish(sport_id, "match_updated", fed_match_id)

        return score_result
