"""
league_engine/orm/club.py
Member clubs that register players and field teams
"""
from sqlalchemy import Column, Integer, String

from league_engine.orm.base import Base


class Club(Base):
    __tablename__ = "clubs"

    club_id = Column(Integer, primary_key=True, autoincrement=True)
    club_name = Column(String(255), nullable=False)
