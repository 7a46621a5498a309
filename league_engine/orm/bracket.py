"""
league_engine/orm/bracket.py
Single-elimination bracket: teams and matches.

A later match names the earlier matches that feed it through
parent_match1_id / parent_match2_id; the winner of parent_match1 takes the
team1 slot, the winner of parent_match2 the team2 slot.
"""
import enum

from sqlalchemy import (
    Column, Integer, DateTime, ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import relationship

from league_engine.orm.base import Base


class RoundLabel(enum.Enum):
    """
    Fixed round_id → title table. round_ids outside the table resolve to
    UNKNOWN, whose title is derived from the raw id.
    """
    FIRST_ROUND = (0, "1st Round")
    SECOND_ROUND = (1, "2nd Round")
    QUARTER_FINALS = (2, "Quarter Finals")
    SEMI_FINALS = (3, "Semi Finals")
    CONSOLATION_FINALS = (4, "Consolation Finals")
    FINALS = (5, "Finals")
    UNKNOWN = (None, None)

    def __init__(self, round_id, title):
        self.round_id = round_id
        self.title = title

    @classmethod
    def from_round_id(cls, round_id) -> "RoundLabel":
        for label in cls:
            if label.round_id is not None and label.round_id == round_id:
                return label
        return cls.UNKNOWN

    @classmethod
    def title_for(cls, round_id) -> str:
        label = cls.from_round_id(round_id)
        if label is cls.UNKNOWN:
            return f"Round {round_id}"
        return label.title


class Team(Base):
    """A club's entry in one sport's bracket."""
    __tablename__ = "teams"

    team_id = Column(Integer, primary_key=True, autoincrement=True)
    club_id = Column(Integer, ForeignKey("clubs.club_id"), nullable=True)
    sport_id = Column(Integer, ForeignKey("events.sport_id"), nullable=True, index=True)
    seed_number = Column(Integer, nullable=True)

    club = relationship("Club", lazy="selectin")

    @property
    def display_name(self):
        return self.club.club_name if self.club else None


class Match(Base):
    __tablename__ = "matches"

    match_id = Column(Integer, primary_key=True, autoincrement=True)
    sport_id = Column(Integer, ForeignKey("events.sport_id"), nullable=False, index=True)

    team1_id = Column(Integer, ForeignKey("teams.team_id"), nullable=True)
    team2_id = Column(Integer, ForeignKey("teams.team_id"), nullable=True)
    team1_score = Column(Integer, nullable=False, default=0)
    team2_score = Column(Integer, nullable=False, default=0)

    round_id = Column(Integer, nullable=False, default=0)
    match_order = Column(Integer, nullable=False, default=0)

    parent_match1_id = Column(Integer, ForeignKey("matches.match_id"), nullable=True)
    parent_match2_id = Column(Integer, ForeignKey("matches.match_id"), nullable=True)

    start_time = Column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint("team1_score >= 0 AND team2_score >= 0", name="ck_match_scores_non_negative"),
        Index('idx_matches_sport_round', 'sport_id', 'round_id', 'match_order'),
        Index('idx_matches_parent1', 'parent_match1_id'),
        Index('idx_matches_parent2', 'parent_match2_id'),
    )

    team1 = relationship("Team", foreign_keys=[team1_id], lazy="selectin")
    team2 = relationship("Team", foreign_keys=[team2_id], lazy="selectin")
