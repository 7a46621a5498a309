"""
Eligibility rules for registering, swapping and moving players.

Pure functions over ORM objects (persistent or transient); nothing here
touches the session. The roster-change ledger calls these before it writes
anything.

Rules:
- Open/mixed sports (or sports with no gender type) accept any player
- Gendered sports require a matching player gender; unknown gender is refused
- A player holds at most one registration per sport
- trackIndividual: at most two trackIndividual registrations per day
- team/individual: at most one team-or-individual registration per day
"""
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple

from league_engine.errors import ErrorCode
from league_engine.exceptions import ValidationError, ForbiddenError, NotFoundError
from league_engine.orm.sport import GenderType, Sport, SportType
from league_engine.orm.registration import Registration

MIXED_GENDER_VALUES = frozenset(g.value for g in (GenderType.OPEN, GenderType.MIXED, GenderType.MIX, GenderType.ANY))
MALE_VALUES = frozenset({'m', GenderType.MALE.value})
FEMALE_VALUES = frozenset({'f', GenderType.FEMALE.value})

TRACK_INDIVIDUAL_DAILY_LIMIT = 2
TEAM_OR_INDIVIDUAL_DAILY_LIMIT = 1


@dataclass(frozen=True)
class EligibilityResult:
    """Outcome of a validation. code names the failed constraint."""
    ok: bool
    error: Optional[str] = None
    code: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def accept(cls) -> "EligibilityResult":
        return cls(ok=True)

    @classmethod
    def reject(cls, error: str, code: str, **details) -> "EligibilityResult":
        return cls(ok=False, error=error, code=code, details=details)

    def raise_for_error(self) -> None:
        """Raise the exception matching the failed constraint, if any."""
        if self.ok:
            return
        if self.code == ErrorCode.CLUB_MISMATCH:
            raise ForbiddenError(self.error, self.code, self.details or None)
        if self.code in (ErrorCode.SPORT_NOT_FOUND, ErrorCode.REGISTRATION_NOT_FOUND):
            raise NotFoundError("Resource", code=self.code, message=self.error)
        raise ValidationError(self.error, self.code, self.details or None)


# =============================================================================
# Gender
# =============================================================================

def is_gender_compatible(player_gender: Optional[str], sport_gender_type: Optional[str]) -> bool:
    """
    Check if a player's gender may take part in a sport.

    Case-insensitive. Unset or open/mixed/mix/any sports accept everyone,
    including players with no recorded gender.
    """
    if not sport_gender_type:
        return True

    sport_gender = sport_gender_type.strip().lower()
    if sport_gender in MIXED_GENDER_VALUES:
        return True

    if not player_gender:
        return False
    gender = player_gender.strip().lower()

    if sport_gender in MALE_VALUES:
        return gender in MALE_VALUES
    if sport_gender in FEMALE_VALUES:
        return gender in FEMALE_VALUES
    return False


# =============================================================================
# Day / duplicate registration limits
# =============================================================================

def _player_registrations(player, registrations: Iterable[Registration]):
    if player is None:
        return [reg for reg in registrations if reg is not None]
    return [reg for reg in registrations if reg is not None and reg.rmis_id == player.rmis_id]


def build_constraint_snapshot(registrations: Iterable[Registration]) -> Tuple[Counter, Counter]:
    """
    Count registrations per sport_day.

    Returns (track, combined): trackIndividual registrations per day, and
    team + individual registrations per day counted together.
    """
    track: Counter = Counter()
    combined: Counter = Counter()
    for reg in registrations:
        sport = reg.sport
        if sport is None or not sport.sport_type or not sport.sport_day:
            continue
        if sport.sport_type == SportType.TRACK_INDIVIDUAL.value:
            track[sport.sport_day] += 1
        elif sport.sport_type in (SportType.TEAM.value, SportType.INDIVIDUAL.value):
            combined[sport.sport_day] += 1
    return track, combined


def check_registration_limits(player, sport: Sport, existing_registrations: Iterable[Registration]) -> EligibilityResult:
    """Same as can_register_for_sport, but says which limit was hit."""
    registrations = _player_registrations(player, existing_registrations)

    if any(reg.sport_id == sport.sport_id for reg in registrations):
        return EligibilityResult.reject(
            "Player is already registered for this sport",
            ErrorCode.DUPLICATE_SPORT,
            sport_id=sport.sport_id,
        )

    track, combined = build_constraint_snapshot(registrations)

    if sport.sport_type == SportType.TRACK_INDIVIDUAL.value:
        if track[sport.sport_day] >= TRACK_INDIVIDUAL_DAILY_LIMIT:
            return EligibilityResult.reject(
                f"Player already has {TRACK_INDIVIDUAL_DAILY_LIMIT} track events on {sport.sport_day}",
                ErrorCode.DAY_LIMIT_EXCEEDED,
                sport_day=sport.sport_day,
            )
    elif sport.sport_type in (SportType.TEAM.value, SportType.INDIVIDUAL.value):
        if combined[sport.sport_day] >= TEAM_OR_INDIVIDUAL_DAILY_LIMIT:
            return EligibilityResult.reject(
                f"Player already has a team or individual sport on {sport.sport_day}",
                ErrorCode.DAY_LIMIT_EXCEEDED,
                sport_day=sport.sport_day,
            )

    return EligibilityResult.accept()


def can_register_for_sport(player, sport: Sport, existing_registrations: Iterable[Registration]) -> bool:
    """
    Check the duplicate-sport and per-day caps for one more registration.

    existing_registrations may contain other players' rows when player is
    given; only the player's own registrations count.
    """
    return check_registration_limits(player, sport, existing_registrations).ok


def has_day_conflict(schedule: Iterable[Registration], target_day: Optional[str], exclude_sport_ids: Iterable[int] = ()) -> bool:
    """
    Check if any registration in schedule falls on target_day, ignoring the
    sports listed in exclude_sport_ids (the ones being exchanged).
    """
    if not target_day:
        return False
    excluded = set(exclude_sport_ids)
    return any(
        reg.sport is not None
        and reg.sport.sport_day == target_day
        and reg.sport_id not in excluded
        for reg in schedule
    )


# =============================================================================
# Swap / move
# =============================================================================

def _same_club(registration: Registration, club_id) -> bool:
    if club_id is None:
        return True
    return int(registration.club_id) == int(club_id)


def _gender_of(registration: Registration) -> Optional[str]:
    return registration.player.gender if registration.player else None


def _gender_type_of(registration: Registration) -> Optional[str]:
    return registration.sport.gender_type if registration.sport else None


def validate_swap(reg1: Registration, reg2: Registration, club_id=None) -> EligibilityResult:
    """
    Validate exchanging the sports of two registrations.

    Each player must fit the other registration's sport; the error names the
    side that fails.
    """
    if reg1.id == reg2.id:
        return EligibilityResult.reject("Cannot swap the same registration", ErrorCode.SELF_SWAP)

    if not _same_club(reg1, club_id) or not _same_club(reg2, club_id):
        return EligibilityResult.reject(
            "Both registrations must belong to the same club",
            ErrorCode.CLUB_MISMATCH,
        )

    if not is_gender_compatible(_gender_of(reg1), _gender_type_of(reg2)):
        return EligibilityResult.reject(
            "Player 1 gender does not match sport 2 requirements",
            ErrorCode.GENDER_MISMATCH,
            side="player1",
            rmis_id=reg1.rmis_id,
            sport_id=reg2.sport_id,
        )

    if not is_gender_compatible(_gender_of(reg2), _gender_type_of(reg1)):
        return EligibilityResult.reject(
            "Player 2 gender does not match sport 1 requirements",
            ErrorCode.GENDER_MISMATCH,
            side="player2",
            rmis_id=reg2.rmis_id,
            sport_id=reg1.sport_id,
        )

    return EligibilityResult.accept()


def validate_move(reg: Registration, destination_sport: Optional[Sport], club_id=None) -> EligibilityResult:
    """
    Validate moving one registration to another sport.

    Day conflicts are not checked here; the officer submission path checks
    them separately.
    """
    if destination_sport is None:
        return EligibilityResult.reject("Destination sport not found", ErrorCode.SPORT_NOT_FOUND)

    if not _same_club(reg, club_id):
        return EligibilityResult.reject("Registration does not belong to club", ErrorCode.CLUB_MISMATCH)

    if not is_gender_compatible(_gender_of(reg), destination_sport.gender_type):
        return EligibilityResult.reject(
            "Player gender does not match destination sport requirements",
            ErrorCode.GENDER_MISMATCH,
            rmis_id=reg.rmis_id,
            sport_id=destination_sport.sport_id,
        )

    return EligibilityResult.accept()


def validate_replacement(player_gender: Optional[str], sport: Sport, existing_registrations: Iterable[Registration], player=None) -> EligibilityResult:
    """
    Validate bringing a replacement player into sport.

    existing_registrations are the replacement's current registrations (empty
    for a member who has never played).
    """
    if not is_gender_compatible(player_gender, sport.gender_type):
        return EligibilityResult.reject(
            "Replacement player gender does not match sport requirements",
            ErrorCode.GENDER_MISMATCH,
            sport_id=sport.sport_id,
        )
    return check_registration_limits(player, sport, existing_registrations)
