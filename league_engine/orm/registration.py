"""
league_engine/orm/registration.py
A player's registration for one sport on behalf of a club.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from league_engine.orm.base import Base


class Registration(Base):
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    rmis_id = Column(String(50), ForeignKey("players.rmis_id"), nullable=False)
    sport_id = Column(Integer, ForeignKey("events.sport_id"), nullable=False)
    club_id = Column(Integer, ForeignKey("clubs.club_id"), nullable=False)
    main_player = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('rmis_id', 'sport_id', name='uq_registration_player_sport'),
        Index('idx_registrations_club_sport', 'club_id', 'sport_id'),
    )

    player = relationship("Player", lazy="selectin")
    sport = relationship("Sport", lazy="selectin")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sport_id": self.sport_id,
            "club_id": self.club_id,
            "rmis_id": self.rmis_id,
            "main_player": self.main_player,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
