"""
league_engine/orm/player.py
Registered players and the replacement-player staging records.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey

from league_engine.orm.base import Base


class Player(Base):
    """
    A player keyed by the external membership id (RMIS id).
    """
    __tablename__ = "players"

    rmis_id = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=True)
    club_id = Column(Integer, ForeignKey("clubs.club_id"), nullable=True, index=True)
    ri_id = Column(String(50), nullable=True)
    nic = Column(String(50), nullable=True)
    birthdate = Column(Date, nullable=True)
    gender = Column(String(10), nullable=True)
    status = Column(Integer, nullable=True)
    registered_at = Column(DateTime, default=datetime.utcnow, nullable=True)

    def to_dict(self) -> dict:
        return {
            "rmis_id": self.rmis_id,
            "name": self.name,
            "club_id": self.club_id,
            "ri_id": self.ri_id,
            "gender": self.gender,
            "status": self.status,
        }


class ReplacementPlayer(Base):
    """
    Member data captured for a replacement before (or without) a player row
    existing. Upserted keyed by replacement_id.
    """
    __tablename__ = "replacement_players"

    replacement_id = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=True)
    status = Column(Integer, nullable=True)
    ri_number = Column(String(50), nullable=True)
    club_id = Column(Integer, ForeignKey("clubs.club_id"), nullable=True)
    gender = Column(String(10), nullable=True)
    nic = Column(String(50), nullable=True)
    birthdate = Column(Date, nullable=True)

    def to_dict(self) -> dict:
        return {
            "rmis_id": self.replacement_id,
            "name": self.name,
            "status": self.status,
            "ri_number": self.ri_number,
            "gender": self.gender,
            "nic": self.nic,
            "birthdate": self.birthdate.isoformat() if self.birthdate else None,
        }
