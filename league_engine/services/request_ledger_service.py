"""
Request Ledger

Records roster-change requests (replacement, swap, move) and applies them.

Two timings share one code path:
- Officer submission (auto_approve=False): validate, record a pending entry,
  leave the roster untouched until an admin approves
- Admin-direct (auto_approve=True): validate, apply the change and record an
  already-approved entry in the same transaction

State machine: PENDING → APPROVED | REJECTED. Both terminal states are final.

Every multi-row write runs in one transaction; on failure the whole change is
rolled back and PersistenceError is raised.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Type, Union

from sqlalchemy import select, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from league_engine.config.feature_flags import feature_flags
from league_engine.errors import ErrorCode
from league_engine.exceptions import (
    ConflictError, ForbiddenError, InvalidTransitionError, NotFoundError,
    PersistenceError, ValidationError,
)
from league_engine.orm.player import Player, ReplacementPlayer
from league_engine.orm.registration import Registration
from league_engine.orm.roster_requests import (
    ReplacementRequest, RequestStatus, RequestType, SwapRequest,
)
from league_engine.orm.sport import Sport
from league_engine.schemas.roster_changes import ReplacementChange, RosterChange, SwapChange
from league_engine.services.eligibility_service import (
    has_day_conflict, validate_move, validate_replacement, validate_swap,
)

logger = logging.getLogger(__name__)

LedgerEntry = Union[ReplacementRequest, SwapRequest]

# Membership statuses that must carry an RI number on replacement
RI_NUMBER_REQUIRED_STATUSES = (1, 3)


# =============================================================================
# Input cleaning
# =============================================================================

def clean_reason(reason: Optional[str]) -> str:
    cleaned = (reason or "").strip()
    if not cleaned:
        raise ValidationError("Reason is required", ErrorCode.MISSING_FIELD, {"field": "reason"})
    return cleaned


def clean_supporting_link(link: Optional[str]) -> Optional[str]:
    cleaned = (link or "").strip() or None
    if cleaned and not cleaned.startswith("https://"):
        raise ValidationError("Supporting link must be a valid https URL", ErrorCode.INVALID_LINK)
    return cleaned


def resolve_ri_number(change: ReplacementChange, require: bool) -> Optional[str]:
    """RI number from the request, falling back to the member record."""
    ri_number = (change.ri_number or change.replacement_member.ri_number or "").strip()
    if require and change.replacement_member.status in RI_NUMBER_REQUIRED_STATUSES and not ri_number:
        raise ValidationError("RI number is required for general members", ErrorCode.MISSING_FIELD, {"field": "ri_number"})
    return ri_number or None


class RequestLedger:
    """
    Roster-change ledger. All methods take the caller's session and commit it.
    """

    VALID_TRANSITIONS = {
        RequestStatus.PENDING: [RequestStatus.APPROVED, RequestStatus.REJECTED],
        RequestStatus.APPROVED: [],
        RequestStatus.REJECTED: [],
    }

    @staticmethod
    def _is_valid_transition(current: RequestStatus, new: RequestStatus) -> bool:
        return new in RequestLedger.VALID_TRANSITIONS.get(current, [])

    @staticmethod
    def model_for(request_type: RequestType) -> Type[LedgerEntry]:
        if RequestType(request_type) is RequestType.REPLACEMENT:
            return ReplacementRequest
        return SwapRequest

    # =========================================================================
    # Lookups
    # =========================================================================

    @staticmethod
    async def _get_registration(db: AsyncSession, registration_id: int, label: str = "Registration") -> Registration:
        result = await db.execute(
            select(Registration)
            .where(Registration.id == registration_id)
            .execution_options(populate_existing=True)
        )
        registration = result.scalar_one_or_none()
        if not registration:
            raise NotFoundError(label, registration_id, ErrorCode.REGISTRATION_NOT_FOUND, message=f"{label} not found")
        return registration

    @staticmethod
    async def _get_sport(db: AsyncSession, sport_id: int) -> Optional[Sport]:
        result = await db.execute(select(Sport).where(Sport.sport_id == sport_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def _registrations_for_player(db: AsyncSession, rmis_id: str) -> List[Registration]:
        result = await db.execute(
            select(Registration)
            .where(Registration.rmis_id == rmis_id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    @staticmethod
    async def _get_entry(db: AsyncSession, request_type: RequestType, request_id: int) -> LedgerEntry:
        model = RequestLedger.model_for(request_type)
        result = await db.execute(
            select(model)
            .where(model.id == request_id)
            .execution_options(populate_existing=True)
        )
        entry = result.scalar_one_or_none()
        if not entry:
            label = "Replacement request" if model is ReplacementRequest else "Swap request"
            raise NotFoundError(label, request_id, ErrorCode.REQUEST_NOT_FOUND, message=f"{label} not found")
        return entry

    # =========================================================================
    # Ledger checks
    # =========================================================================

    @staticmethod
    async def _ensure_no_pending_replacement(db: AsyncSession, registration_id: int) -> None:
        result = await db.execute(
            select(ReplacementRequest.id).where(
                ReplacementRequest.registrations_id == registration_id,
                ReplacementRequest.status.is_(None),
            ).limit(1)
        )
        if result.scalar_one_or_none() is not None:
            raise ConflictError("A pending request already exists for this player", ErrorCode.PENDING_EXISTS)

    @staticmethod
    async def _ensure_no_pending_swap(db: AsyncSession, registration_ids: List[int]) -> None:
        ids = [rid for rid in registration_ids if rid]
        if not ids:
            return
        result = await db.execute(
            select(SwapRequest.id).where(
                or_(
                    SwapRequest.player1_registrations_id.in_(ids),
                    SwapRequest.player2_registrations_id.in_(ids),
                ),
                SwapRequest.status.is_(None),
            ).limit(1)
        )
        if result.scalar_one_or_none() is not None:
            raise ConflictError("A pending swap already exists for selected player(s)", ErrorCode.PENDING_EXISTS)

    @classmethod
    async def _ensure_not_in_sport(cls, db: AsyncSession, registration: Registration, sport_id: int, label: str) -> None:
        """The registration's player must not already hold another registration in sport_id."""
        for other in await cls._registrations_for_player(db, registration.rmis_id):
            if other.sport_id == sport_id and other.id != registration.id:
                raise ValidationError(
                    f"{label} is already registered for the destination sport",
                    ErrorCode.DUPLICATE_SPORT,
                    {"rmis_id": registration.rmis_id, "sport_id": sport_id},
                )

    @classmethod
    async def _check_replacement(
        cls,
        db: AsyncSession,
        club_id: int,
        sport_id: int,
        registration_id: int,
        replacement_id: str,
        replacement_gender: Optional[str],
        expected_rmis_id: Optional[str] = None,
    ) -> Tuple[Registration, Optional[Player]]:
        """
        Validate a replacement against current data.

        Returns the registration and the replacement's player row, if any.
        """
        registration = await cls._get_registration(db, registration_id)
        if int(registration.club_id) != int(club_id):
            raise ForbiddenError("Registration does not belong to club", ErrorCode.CLUB_MISMATCH)
        if registration.sport_id != sport_id:
            raise ValidationError(
                "Registration does not belong to the selected sport",
                ErrorCode.VALIDATION_ERROR,
                {"registrations_id": registration_id, "sport_id": sport_id},
            )
        if expected_rmis_id is not None and registration.rmis_id != expected_rmis_id:
            raise ValidationError(
                "Registration has changed since the request was submitted",
                ErrorCode.STALE_REQUEST,
                {"registrations_id": registration_id},
            )

        sport = registration.sport or await cls._get_sport(db, sport_id)
        if sport is None:
            raise NotFoundError("Sport", sport_id, ErrorCode.SPORT_NOT_FOUND, message="Sport not found")

        existing_player = await db.get(Player, replacement_id)
        gender = replacement_gender or (existing_player.gender if existing_player else None)
        current = await cls._registrations_for_player(db, replacement_id)
        validate_replacement(gender, sport, current, existing_player).raise_for_error()
        return registration, existing_player

    @classmethod
    async def _check_swap(
        cls,
        db: AsyncSession,
        club_id: int,
        player1_registration_id: int,
        player2_registration_id: Optional[int],
        sport2_id: Optional[int],
        check_days: bool,
        expected_sports: Optional[Tuple[int, int]] = None,
    ) -> Tuple[Registration, Optional[Registration], Sport]:
        """
        Validate a swap (player2_registration_id set) or a move.

        Returns (reg1, reg2 or None, destination sport of reg1).
        """
        reg1 = await cls._get_registration(db, player1_registration_id, "Player 1 registration")

        if player2_registration_id is not None:
            reg2 = await cls._get_registration(db, player2_registration_id, "Player 2 registration")
            if expected_sports is not None and (reg1.sport_id, reg2.sport_id) != expected_sports:
                raise ValidationError(
                    "Registration has changed since the request was submitted",
                    ErrorCode.STALE_REQUEST,
                )
            validate_swap(reg1, reg2, club_id).raise_for_error()
            await cls._ensure_not_in_sport(db, reg1, reg2.sport_id, "Player 1")
            await cls._ensure_not_in_sport(db, reg2, reg1.sport_id, "Player 2")

            if check_days:
                excluded = [reg1.sport_id, reg2.sport_id]
                schedule1 = await cls._registrations_for_player(db, reg1.rmis_id)
                if has_day_conflict(schedule1, reg2.sport.sport_day if reg2.sport else None, excluded):
                    raise ValidationError(
                        "Player one already has another sport registered on the second sport day",
                        ErrorCode.DAY_CONFLICT,
                    )
                schedule2 = await cls._registrations_for_player(db, reg2.rmis_id)
                if has_day_conflict(schedule2, reg1.sport.sport_day if reg1.sport else None, excluded):
                    raise ValidationError(
                        "Player two already has another sport registered on the first sport day",
                        ErrorCode.DAY_CONFLICT,
                    )
            return reg1, reg2, reg2.sport

        if expected_sports is not None and reg1.sport_id != expected_sports[0]:
            raise ValidationError(
                "Registration has changed since the request was submitted",
                ErrorCode.STALE_REQUEST,
            )
        destination = await cls._get_sport(db, sport2_id) if sport2_id is not None else None
        validate_move(reg1, destination, club_id).raise_for_error()
        await cls._ensure_not_in_sport(db, reg1, destination.sport_id, "Player")
        if reg1.sport_id == destination.sport_id:
            raise ValidationError(
                "Player is already registered for the destination sport",
                ErrorCode.DUPLICATE_SPORT,
                {"sport_id": destination.sport_id},
            )

        if check_days:
            schedule = await cls._registrations_for_player(db, reg1.rmis_id)
            if has_day_conflict(schedule, destination.sport_day, [reg1.sport_id, destination.sport_id]):
                raise ValidationError(
                    "Player already has another sport registered on the destination sport day",
                    ErrorCode.DAY_CONFLICT,
                )
        return reg1, None, destination

    # =========================================================================
    # Mutations
    # =========================================================================

    @staticmethod
    async def _upsert_replacement_player(db: AsyncSession, change: ReplacementChange, ri_number: Optional[str]) -> ReplacementPlayer:
        member = change.replacement_member
        record = await db.get(ReplacementPlayer, member.membership_id)
        if record is None:
            record = ReplacementPlayer(replacement_id=member.membership_id)
            db.add(record)
        record.name = member.display_name
        record.status = member.status
        record.ri_number = ri_number
        record.club_id = change.club_id
        record.gender = member.gender
        record.nic = member.nic
        record.birthdate = member.birthdate
        return record

    @staticmethod
    def _apply_replacement(
        db: AsyncSession,
        registration: Registration,
        replacement: ReplacementPlayer,
        existing_player: Optional[Player],
        club_id: int,
    ) -> Player:
        """Repoint the registration at the replacement, creating its player row if missing."""
        player = existing_player
        if player is None:
            player = Player(
                rmis_id=replacement.replacement_id,
                name=replacement.name,
                club_id=club_id,
                ri_id=replacement.ri_number,
                nic=replacement.nic,
                birthdate=replacement.birthdate,
                gender=replacement.gender,
                status=replacement.status,
                registered_at=datetime.utcnow(),
            )
            db.add(player)
        registration.player = player
        registration.rmis_id = player.rmis_id
        return player

    @staticmethod
    def _apply_swap(reg1: Registration, reg2: Optional[Registration], destination: Sport) -> None:
        """Swap exchanges the two sports; a move points reg1 at destination."""
        if reg2 is None:
            reg1.sport = destination
            reg1.sport_id = destination.sport_id
            return
        sport1, sport2 = reg1.sport, reg2.sport
        sport1_id, sport2_id = reg1.sport_id, reg2.sport_id
        reg1.sport, reg1.sport_id = sport2, sport2_id
        reg2.sport, reg2.sport_id = sport1, sport1_id

    @staticmethod
    def _mark(entry: LedgerEntry, status: RequestStatus, actor: str) -> None:
        entry.status = status.to_column()
        entry.approved_by = actor
        entry.approved_at = datetime.utcnow()

    @staticmethod
    async def _commit(db: AsyncSession, action: str) -> None:
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to {action}: {str(e)}")
            raise PersistenceError(f"Failed to {action}", ErrorCode.PERSISTENCE_ERROR)

    # =========================================================================
    # Submission
    # =========================================================================

    @classmethod
    async def submit(
        cls,
        db: AsyncSession,
        change: RosterChange,
        actor_id: Optional[str] = None,
        auto_approve: bool = False,
        actor_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Record a roster change.

        With auto_approve the change is applied and logged as approved by
        actor_name (or actor_id) in one transaction; otherwise a pending entry
        is recorded and nothing else changes.

        Raises:
            ValidationError, ForbiddenError, NotFoundError: change is not allowed
            ConflictError: a pending request already covers the registration
            PersistenceError: the write failed and was rolled back
        """
        if isinstance(change, ReplacementChange):
            return await cls._submit_replacement(db, change, actor_id, auto_approve, actor_name)
        return await cls._submit_swap(db, change, actor_id, auto_approve, actor_name)

    @classmethod
    async def _submit_replacement(
        cls,
        db: AsyncSession,
        change: ReplacementChange,
        actor_id: Optional[str],
        auto_approve: bool,
        actor_name: Optional[str],
    ) -> Dict[str, Any]:
        reason = clean_reason(change.reason)
        link = clean_supporting_link(change.supporting_link)
        ri_number = resolve_ri_number(change, require=not auto_approve)

        if not auto_approve:
            await cls._ensure_no_pending_replacement(db, change.registrations_id)

        member = change.replacement_member
        registration, existing_player = await cls._check_replacement(
            db,
            club_id=change.club_id,
            sport_id=change.sport_id,
            registration_id=change.registrations_id,
            replacement_id=member.membership_id,
            replacement_gender=member.gender,
        )
        original_rmis_id = registration.rmis_id

        replacement = await cls._upsert_replacement_player(db, change, ri_number)
        entry = ReplacementRequest(
            sport_id=change.sport_id,
            registrations_id=change.registrations_id,
            original_player_rmis_id=original_rmis_id,
            replacement_id=member.membership_id,
            club_id=change.club_id,
            reason=reason,
            supporting_link=link,
            ri_number=ri_number,
            requested_by=actor_id or change.requested_by,
        )
        if auto_approve:
            cls._apply_replacement(db, registration, replacement, existing_player, change.club_id)
            cls._mark(entry, RequestStatus.APPROVED, actor_name or actor_id)
        db.add(entry)

        await cls._commit(db, "store replacement request")

        if auto_approve:
            logger.info(
                f"Registration {change.registrations_id} replaced {original_rmis_id} -> "
                f"{member.membership_id} by admin {actor_id}"
            )
        else:
            logger.info(f"Replacement request {entry.id} submitted for registration {change.registrations_id}")
        return await cls.get_request(db, RequestType.REPLACEMENT, entry.id)

    @classmethod
    async def _submit_swap(
        cls,
        db: AsyncSession,
        change: SwapChange,
        actor_id: Optional[str],
        auto_approve: bool,
        actor_name: Optional[str],
    ) -> Dict[str, Any]:
        reason = clean_reason(change.reason)
        is_swap = change.request_type is RequestType.SWAP

        if not auto_approve:
            await cls._ensure_no_pending_swap(
                db, [change.player1_registrations_id, change.player2_registrations_id]
            )

        reg1, reg2, destination = await cls._check_swap(
            db,
            club_id=change.club_id,
            player1_registration_id=change.player1_registrations_id,
            player2_registration_id=change.player2_registrations_id if is_swap else None,
            sport2_id=change.sport2_id,
            check_days=not auto_approve,
        )

        entry = SwapRequest(
            club_id=change.club_id,
            player1_registrations_id=reg1.id,
            player2_registrations_id=reg2.id if reg2 is not None else None,
            sport1_id=reg1.sport_id,
            sport2_id=destination.sport_id if reg2 is None else reg2.sport_id,
            reason=reason,
            requested_by=actor_id or change.requested_by,
        )
        if auto_approve:
            cls._apply_swap(reg1, reg2, destination)
            cls._mark(entry, RequestStatus.APPROVED, actor_name or actor_id)
        db.add(entry)

        await cls._commit(db, f"store {change.request_type.value} request")

        logger.info(
            f"{change.request_type.value.capitalize()} request {entry.id} "
            f"{'applied by admin ' + str(actor_id) if auto_approve else 'submitted'} "
            f"for registration {reg1.id}"
        )
        return await cls.get_request(db, change.request_type, entry.id)

    # =========================================================================
    # Approval / rejection
    # =========================================================================

    @classmethod
    async def _load_pending(cls, db: AsyncSession, request_type: RequestType, request_id: int, new: RequestStatus) -> LedgerEntry:
        entry = await cls._get_entry(db, request_type, request_id)
        if not cls._is_valid_transition(entry.request_status, new):
            logger.warning(
                f"Rejected transition {entry.request_status.value} -> {new.value} "
                f"for {entry.request_type.value} request {request_id}"
            )
            raise InvalidTransitionError("This request has already been processed", ErrorCode.ALREADY_PROCESSED)
        return entry

    @classmethod
    async def approve(cls, db: AsyncSession, request_type: RequestType, request_id: int, approved_by: str) -> Dict[str, Any]:
        """
        Approve a pending request and apply its change in one transaction.

        Eligibility is checked again against current data (unless
        FEATURE_REVALIDATE_ON_APPROVAL is off); a failure leaves the request
        pending.
        """
        entry = await cls._load_pending(db, request_type, request_id, RequestStatus.APPROVED)
        revalidate = feature_flags.FEATURE_REVALIDATE_ON_APPROVAL

        if isinstance(entry, ReplacementRequest):
            replacement = await db.get(ReplacementPlayer, entry.replacement_id)
            if replacement is None:
                raise NotFoundError("Replacement player", entry.replacement_id, ErrorCode.NOT_FOUND)
            if revalidate:
                registration, existing_player = await cls._check_replacement(
                    db,
                    club_id=entry.club_id,
                    sport_id=entry.sport_id,
                    registration_id=entry.registrations_id,
                    replacement_id=entry.replacement_id,
                    replacement_gender=replacement.gender,
                    expected_rmis_id=entry.original_player_rmis_id,
                )
            else:
                registration = await cls._get_registration(db, entry.registrations_id)
                existing_player = await db.get(Player, entry.replacement_id)
            cls._apply_replacement(db, registration, replacement, existing_player, entry.club_id)
        else:
            if revalidate:
                reg1, reg2, destination = await cls._check_swap(
                    db,
                    club_id=entry.club_id,
                    player1_registration_id=entry.player1_registrations_id,
                    player2_registration_id=entry.player2_registrations_id,
                    sport2_id=entry.sport2_id,
                    check_days=False,
                    expected_sports=(entry.sport1_id, entry.sport2_id),
                )
            else:
                reg1 = await cls._get_registration(db, entry.player1_registrations_id, "Player 1 registration")
                reg2 = None
                if entry.player2_registrations_id is not None:
                    reg2 = await cls._get_registration(db, entry.player2_registrations_id, "Player 2 registration")
                destination = await cls._get_sport(db, entry.sport2_id)
                if destination is None:
                    raise NotFoundError("Sport", entry.sport2_id, ErrorCode.SPORT_NOT_FOUND, message="Destination sport not found")
            cls._apply_swap(reg1, reg2, destination)

        cls._mark(entry, RequestStatus.APPROVED, approved_by)
        await cls._commit(db, f"approve {entry.request_type.value} request")

        logger.info(f"{entry.request_type.value.capitalize()} request {request_id} approved by {approved_by}")
        return await cls.get_request(db, entry.request_type, request_id)

    @classmethod
    async def reject(cls, db: AsyncSession, request_type: RequestType, request_id: int, rejected_by: str) -> Dict[str, Any]:
        """Reject a pending request. The roster is not touched."""
        entry = await cls._load_pending(db, request_type, request_id, RequestStatus.REJECTED)
        cls._mark(entry, RequestStatus.REJECTED, rejected_by)
        await cls._commit(db, f"reject {entry.request_type.value} request")

        logger.info(f"{entry.request_type.value.capitalize()} request {request_id} rejected by {rejected_by}")
        return await cls.get_request(db, entry.request_type, request_id)

    # =========================================================================
    # Listing
    # =========================================================================

    @classmethod
    async def get_request(cls, db: AsyncSession, request_type: RequestType, request_id: int) -> Dict[str, Any]:
        """One ledger entry with its club, sports and players."""
        entry = await cls._get_entry(db, request_type, request_id)
        return entry.to_dict()

    @classmethod
    async def list_requests(
        cls,
        db: AsyncSession,
        request_type: RequestType,
        club_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
    ) -> List[Dict[str, Any]]:
        """Ledger entries, newest first. swap and move share one listing."""
        model = cls.model_for(request_type)
        query = select(model)
        if club_id is not None:
            query = query.where(model.club_id == club_id)
        if status is not None:
            column_value = status.to_column()
            query = query.where(model.status.is_(None) if column_value is None else model.status == column_value)
        query = query.order_by(model.created_at.desc(), model.id.desc()).execution_options(populate_existing=True)

        result = await db.execute(query)
        return [entry.to_dict() for entry in result.scalars().all()]
