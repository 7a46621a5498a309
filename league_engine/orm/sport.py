"""
league_engine/orm/sport.py
Sports / events a club can register players into.

gender_type and sport_type are stored as free strings because the portal
writes several spellings (m/male, mixed/mix/open/any); the enums below are the
canonical values the eligibility rules compare against.
"""
import enum

from sqlalchemy import Column, Integer, String

from league_engine.orm.base import Base


class SportType(str, enum.Enum):
    TEAM = "team"
    INDIVIDUAL = "individual"
    TRACK_INDIVIDUAL = "trackIndividual"
    OTHER = "other"


class GenderType(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OPEN = "open"
    MIXED = "mixed"
    MIX = "mix"
    ANY = "any"


class Sport(Base):
    """
    A sport/event. Immutable once created as far as this engine is concerned.
    """
    __tablename__ = "events"

    sport_id = Column(Integer, primary_key=True, autoincrement=True)
    sport_name = Column(String(255), nullable=False)
    gender_type = Column(String(20), nullable=True)
    sport_type = Column(String(30), nullable=False, default=SportType.OTHER.value)
    sport_day = Column(String(50), nullable=True, index=True)
    max_count = Column(Integer, nullable=True)
    reserve_count = Column(Integer, nullable=True)
    category = Column(String(100), nullable=True)

    def to_dict(self) -> dict:
        return {
            "sport_id": self.sport_id,
            "sport_name": self.sport_name,
            "sport_type": self.sport_type,
            "gender_type": self.gender_type,
            "sport_day": self.sport_day,
            "category": self.category,
            "max_count": self.max_count,
            "reserve_count": self.reserve_count,
        }
