"""
Roster-change request schemas.

ReplacementChange and SwapChange are what RequestLedger.submit accepts;
AdminPlayerChange is the admin-direct envelope that unwraps into one of them.
"""
from datetime import date
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from league_engine.errors import ErrorCode
from league_engine.exceptions import ValidationError
from league_engine.orm.roster_requests import RequestType


class ReplacementMember(BaseModel):
    """Membership record of the player coming in."""
    membership_id: str = Field(..., min_length=1, description="External membership (RMIS) id")
    name: Optional[str] = None
    card_name: Optional[str] = None
    status: Optional[int] = Field(None, description="Membership status code")
    ri_number: Optional[str] = None
    gender: Optional[str] = None
    nic: Optional[str] = None
    birthdate: Optional[date] = None

    @property
    def display_name(self) -> Optional[str]:
        return self.card_name or self.name


class ReplacementChange(BaseModel):
    """Replace the player on one registration."""
    club_id: int
    sport_id: int
    registrations_id: int
    replacement_member: ReplacementMember
    reason: Optional[str] = None
    supporting_link: Optional[str] = None
    ri_number: Optional[str] = None
    requested_by: Optional[str] = None

    @property
    def request_type(self) -> RequestType:
        return RequestType.REPLACEMENT


class SwapChange(BaseModel):
    """
    Swap two registrations' sports, or move one registration to sport2_id.

    A change with player2_registrations_id is a swap; otherwise sport2_id is
    required and it is a move.
    """
    club_id: int
    player1_registrations_id: int
    player2_registrations_id: Optional[int] = None
    sport2_id: Optional[int] = None
    reason: Optional[str] = None
    requested_by: Optional[str] = None

    @model_validator(mode="after")
    def check_swap_type(self):
        if self.player2_registrations_id is None and self.sport2_id is None:
            raise ValueError("Select a swap type and required fields")
        if self.player2_registrations_id is not None and self.sport2_id is not None:
            raise ValueError("Choose either a player to swap with or a destination sport, not both")
        return self

    @property
    def request_type(self) -> RequestType:
        if self.player2_registrations_id is not None:
            return RequestType.SWAP
        return RequestType.MOVE


RosterChange = Union[ReplacementChange, SwapChange]


class LedgerApproval(BaseModel):
    request_id: int
    approved_by: str = Field(..., min_length=1)


class LedgerRejection(BaseModel):
    request_id: int
    rejected_by: str = Field(..., min_length=1)


class AdminPlayerChange(BaseModel):
    """
    Admin-direct change. action picks which of the payload fields are used.
    """
    action: str = Field(..., description="replacement, swap or move")
    admin_id: str = Field(..., min_length=1)
    admin_name: Optional[str] = None
    club_id: Optional[int] = None
    reason: Optional[str] = None

    sport_id: Optional[int] = None
    registrations_id: Optional[int] = None
    replacement_member: Optional[ReplacementMember] = None
    supporting_link: Optional[str] = None

    player1_registrations_id: Optional[int] = None
    player2_registrations_id: Optional[int] = None
    sport2_id: Optional[int] = None

    @field_validator('action')
    def validate_action(cls, v):
        valid_actions = [t.value for t in RequestType]
        if v not in valid_actions:
            raise ValueError('Invalid action type. Use: replacement, swap, or move')
        return v

    def to_change(self) -> RosterChange:
        """Unwrap into the change RequestLedger.submit takes."""
        if self.action == RequestType.REPLACEMENT.value:
            if not (self.club_id and self.sport_id and self.registrations_id and self.replacement_member):
                raise ValidationError("Missing required fields for replacement", ErrorCode.MISSING_FIELD)
            return ReplacementChange(
                club_id=self.club_id,
                sport_id=self.sport_id,
                registrations_id=self.registrations_id,
                replacement_member=self.replacement_member,
                reason=self.reason,
                supporting_link=self.supporting_link,
                ri_number=self.replacement_member.ri_number,
                requested_by=self.admin_id,
            )

        if self.action == RequestType.SWAP.value:
            if not (self.club_id and self.player1_registrations_id and self.player2_registrations_id):
                raise ValidationError("Missing required fields for swap", ErrorCode.MISSING_FIELD)
            return SwapChange(
                club_id=self.club_id,
                player1_registrations_id=self.player1_registrations_id,
                player2_registrations_id=self.player2_registrations_id,
                reason=self.reason,
                requested_by=self.admin_id,
            )

        if not (self.club_id and self.player1_registrations_id and self.sport2_id):
            raise ValidationError("Missing required fields for move", ErrorCode.MISSING_FIELD)
        return SwapChange(
            club_id=self.club_id,
            player1_registrations_id=self.player1_registrations_id,
            sport2_id=self.sport2_id,
            reason=self.reason,
            requested_by=self.admin_id,
        )
