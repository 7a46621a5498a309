"""
league_engine/orm/roster_requests.py
Ledger of roster-change requests.

status is tri-state: NULL (pending), TRUE (approved), FALSE (rejected).
Both terminal states are final.
"""
import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship, declared_attr

from league_engine.orm.base import Base


class RequestType(str, enum.Enum):
    REPLACEMENT = "replacement"
    SWAP = "swap"
    MOVE = "move"


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def from_column(cls, value) -> "RequestStatus":
        if value is None:
            return cls.PENDING
        return cls.APPROVED if value else cls.REJECTED

    def to_column(self):
        if self is RequestStatus.PENDING:
            return None
        return self is RequestStatus.APPROVED


class LedgerEntryMixin:
    """Approval columns shared by every ledger table."""

    @declared_attr
    def club_id(cls):
        return Column(Integer, ForeignKey("clubs.club_id"), nullable=False, index=True)

    @declared_attr
    def club(cls):
        return relationship("Club", lazy="selectin")

    reason = Column(Text, nullable=False)
    requested_by = Column(String(100), nullable=True)
    status = Column(Boolean, nullable=True, default=None)
    approved_by = Column(String(100), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    @property
    def request_status(self) -> RequestStatus:
        return RequestStatus.from_column(self.status)

    @property
    def club_name(self):
        return self.club.club_name if self.club else None


class ReplacementRequest(LedgerEntryMixin, Base):
    __tablename__ = "replacement_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sport_id = Column(Integer, ForeignKey("events.sport_id"), nullable=False)
    registrations_id = Column(Integer, ForeignKey("registrations.id"), nullable=False)
    original_player_rmis_id = Column(String(50), nullable=False)
    replacement_id = Column(String(50), ForeignKey("replacement_players.replacement_id"), nullable=False)
    supporting_link = Column(String(500), nullable=True)
    ri_number = Column(String(50), nullable=True)

    __table_args__ = (
        Index('idx_replacement_requests_registration_status', 'registrations_id', 'status'),
    )

    sport = relationship("Sport", lazy="selectin")
    registration = relationship("Registration", lazy="selectin")
    replacement_player = relationship("ReplacementPlayer", lazy="selectin")
    original_player = relationship(
        "Player",
        primaryjoin="foreign(ReplacementRequest.original_player_rmis_id) == Player.rmis_id",
        lazy="selectin",
        viewonly=True,
    )

    @property
    def request_type(self) -> RequestType:
        return RequestType.REPLACEMENT

    def to_dict(self) -> dict:
        original_player = None
        if self.original_player is not None:
            original_player = self.original_player.to_dict()
            original_player["main_player"] = self.registration.main_player if self.registration else None
        return {
            "id": self.id,
            "type": self.request_type.value,
            "sport_id": self.sport_id,
            "registrations_id": self.registrations_id,
            "original_player_rmis_id": self.original_player_rmis_id,
            "replacement_id": self.replacement_id,
            "club_id": self.club_id,
            "club_name": self.club_name,
            "sport": self.sport.to_dict() if self.sport else None,
            "replacement_player": self.replacement_player.to_dict() if self.replacement_player else None,
            "original_player": original_player,
            "reason": self.reason,
            "supporting_link": self.supporting_link,
            "ri_number": self.ri_number,
            "requested_by": self.requested_by,
            "status": self.status,
            "state": self.request_status.value,
            "approved_by": self.approved_by,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


def _registered_player(registration) -> Optional[dict]:
    if registration is None or registration.player is None:
        return None
    player = registration.player
    return {
        "registration_id": registration.id,
        "rmis_id": player.rmis_id,
        "name": player.name,
        "gender": player.gender,
    }


class SwapRequest(LedgerEntryMixin, Base):
    """
    Swap (two registrations exchange sports) or move (one registration goes
    to sport2_id). A move has no player2_registrations_id.
    """
    __tablename__ = "swap_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    player1_registrations_id = Column(Integer, ForeignKey("registrations.id"), nullable=False)
    player2_registrations_id = Column(Integer, ForeignKey("registrations.id"), nullable=True)
    sport1_id = Column(Integer, ForeignKey("events.sport_id"), nullable=False)
    sport2_id = Column(Integer, ForeignKey("events.sport_id"), nullable=False)

    __table_args__ = (
        Index('idx_swap_requests_player1_status', 'player1_registrations_id', 'status'),
        Index('idx_swap_requests_player2_status', 'player2_registrations_id', 'status'),
    )

    player1_registration = relationship("Registration", foreign_keys=[player1_registrations_id], lazy="selectin")
    player2_registration = relationship("Registration", foreign_keys=[player2_registrations_id], lazy="selectin")
    sport1 = relationship("Sport", foreign_keys=[sport1_id], lazy="selectin")
    sport2 = relationship("Sport", foreign_keys=[sport2_id], lazy="selectin")

    @property
    def request_type(self) -> RequestType:
        if self.player2_registrations_id is None:
            return RequestType.MOVE
        return RequestType.SWAP

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.request_type.value,
            "club_id": self.club_id,
            "club_name": self.club_name,
            "player1_registrations_id": self.player1_registrations_id,
            "player2_registrations_id": self.player2_registrations_id,
            "player1": _registered_player(self.player1_registration),
            "player2": _registered_player(self.player2_registration),
            "sport1_id": self.sport1_id,
            "sport2_id": self.sport2_id,
            "sport1": self.sport1.to_dict() if self.sport1 else None,
            "sport2": self.sport2.to_dict() if self.sport2 else None,
            "reason": self.reason,
            "requested_by": self.requested_by,
            "status": self.status,
            "state": self.request_status.value,
            "approved_by": self.approved_by,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
