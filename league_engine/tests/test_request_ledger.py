"""
Tests for the roster-change ledger: officer submissions, admin approval and
rejection, admin-direct changes, and the checks in front of them.
"""
import pytest
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import select, func

from league_engine.config.feature_flags import feature_flags
from league_engine.errors import ErrorCode
from league_engine.exceptions import (
    ConflictError, ForbiddenError, InvalidTransitionError, NotFoundError,
    PersistenceError, ValidationError,
)
from league_engine.orm.club import Club
from league_engine.orm.player import Player, ReplacementPlayer
from league_engine.orm.registration import Registration
from league_engine.orm.roster_requests import (
    ReplacementRequest, RequestStatus, RequestType, SwapRequest,
)
from league_engine.schemas.roster_changes import (
    AdminPlayerChange, ReplacementChange, ReplacementMember, SwapChange,
)
from league_engine.services.request_ledger_service import RequestLedger


async def reload_registration(db, registration_id) -> Registration:
    result = await db.execute(
        select(Registration)
        .where(Registration.id == registration_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def count(db, model) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one()


def replacement_change(**overrides) -> ReplacementChange:
    data = {
        "club_id": 1,
        "sport_id": 1,
        "registrations_id": 1,
        "replacement_member": ReplacementMember(
            membership_id="RM-900", name="Nuwan", gender="male", status=2, nic="901234567V"
        ),
        "reason": "  Injured during practice  ",
        "supporting_link": "https://example.org/medical.pdf",
        "requested_by": "officer-1",
    }
    data.update(overrides)
    return ReplacementChange(**data)


# =============================================================================
# Replacement
# =============================================================================

class TestReplacementSubmission:

    @pytest.mark.asyncio
    async def test_officer_submission_is_pending_and_leaves_roster(self, db_session, league):
        entry = await RequestLedger.submit(db_session, replacement_change(), actor_id="officer-1")

        assert entry["status"] is None
        assert entry["state"] == "pending"
        assert entry["reason"] == "Injured during practice"
        assert entry["original_player_rmis_id"] == "RM-001"
        assert entry["approved_by"] is None

        registration = await reload_registration(db_session, 1)
        assert registration.rmis_id == "RM-001"
        assert await db_session.get(Player, "RM-900") is None
        staged = await db_session.get(ReplacementPlayer, "RM-900")
        assert staged.name == "Nuwan"
        assert staged.club_id == 1

    @pytest.mark.asyncio
    async def test_approve_applies_replacement(self, db_session, league):
        entry = await RequestLedger.submit(db_session, replacement_change(), actor_id="officer-1")

        approved = await RequestLedger.approve(db_session, RequestType.REPLACEMENT, entry["id"], "admin-1")

        assert approved["status"] is True
        assert approved["approved_by"] == "admin-1"
        assert approved["approved_at"] is not None
        registration = await reload_registration(db_session, 1)
        assert registration.rmis_id == "RM-900"
        player = await db_session.get(Player, "RM-900")
        assert player.gender == "male"
        assert player.club_id == 1

    @pytest.mark.asyncio
    async def test_approve_uses_existing_player_row(self, db_session, league):
        member = ReplacementMember(membership_id="RM-002", name="Bimal", gender="male", status=2)
        entry = await RequestLedger.submit(db_session, replacement_change(replacement_member=member), actor_id="officer-1")

        await RequestLedger.approve(db_session, RequestType.REPLACEMENT, entry["id"], "admin-1")

        registration = await reload_registration(db_session, 1)
        assert registration.rmis_id == "RM-002"
        assert await count(db_session, Player) == 5

    @pytest.mark.asyncio
    async def test_reject_leaves_roster(self, db_session, league):
        entry = await RequestLedger.submit(db_session, replacement_change(), actor_id="officer-1")

        rejected = await RequestLedger.reject(db_session, RequestType.REPLACEMENT, entry["id"], "admin-2")

        assert rejected["status"] is False
        assert rejected["state"] == "rejected"
        assert rejected["approved_by"] == "admin-2"
        registration = await reload_registration(db_session, 1)
        assert registration.rmis_id == "RM-001"

    @pytest.mark.asyncio
    async def test_terminal_states_are_final(self, db_session, league):
        entry = await RequestLedger.submit(db_session, replacement_change(), actor_id="officer-1")
        await RequestLedger.reject(db_session, RequestType.REPLACEMENT, entry["id"], "admin-2")

        with pytest.raises(InvalidTransitionError) as exc_info:
            await RequestLedger.approve(db_session, RequestType.REPLACEMENT, entry["id"], "admin-1")
        assert exc_info.value.code == ErrorCode.ALREADY_PROCESSED
        with pytest.raises(InvalidTransitionError):
            await RequestLedger.reject(db_session, RequestType.REPLACEMENT, entry["id"], "admin-1")

        registration = await reload_registration(db_session, 1)
        assert registration.rmis_id == "RM-001"

    @pytest.mark.asyncio
    async def test_approve_twice_refused(self, db_session, league):
        entry = await RequestLedger.submit(db_session, replacement_change(), actor_id="officer-1")
        await RequestLedger.approve(db_session, RequestType.REPLACEMENT, entry["id"], "admin-1")

        with pytest.raises(InvalidTransitionError):
            await RequestLedger.approve(db_session, RequestType.REPLACEMENT, entry["id"], "admin-1")

    @pytest.mark.asyncio
    async def test_unknown_request(self, db_session, league):
        with pytest.raises(NotFoundError) as exc_info:
            await RequestLedger.approve(db_session, RequestType.REPLACEMENT, 404, "admin-1")
        assert exc_info.value.code == ErrorCode.REQUEST_NOT_FOUND

    @pytest.mark.asyncio
    async def test_admin_direct_is_approved_immediately(self, db_session, league):
        change = AdminPlayerChange(
            action="replacement",
            admin_id="admin-7",
            admin_name="Head Admin",
            club_id=1,
            sport_id=1,
            registrations_id=1,
            replacement_member={"membership_id": "RM-900", "card_name": "N. Perera", "gender": "male", "status": 1},
            reason="Late withdrawal",
        ).to_change()

        entry = await RequestLedger.submit(db_session, change, actor_id="admin-7", auto_approve=True, actor_name="Head Admin")

        assert entry["status"] is True
        assert entry["approved_by"] == "Head Admin"
        assert entry["requested_by"] == "admin-7"
        assert await RequestLedger.list_requests(db_session, RequestType.REPLACEMENT, status=RequestStatus.PENDING) == []

        registration = await reload_registration(db_session, 1)
        assert registration.rmis_id == "RM-900"
        player = await db_session.get(Player, "RM-900")
        assert player.name == "N. Perera"

    @pytest.mark.asyncio
    async def test_admin_direct_without_name_records_admin_id(self, db_session, league):
        entry = await RequestLedger.submit(db_session, replacement_change(), actor_id="admin-7", auto_approve=True)
        assert entry["approved_by"] == "admin-7"


class TestReplacementChecks:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reason", [None, "", "   "])
    async def test_reason_required(self, db_session, league, reason):
        with pytest.raises(ValidationError) as exc_info:
            await RequestLedger.submit(db_session, replacement_change(reason=reason), actor_id="officer-1")
        assert exc_info.value.message == "Reason is required"
        assert await count(db_session, ReplacementRequest) == 0
        assert await count(db_session, ReplacementPlayer) == 0

    @pytest.mark.asyncio
    async def test_supporting_link_must_be_https(self, db_session, league):
        with pytest.raises(ValidationError) as exc_info:
            await RequestLedger.submit(db_session, replacement_change(supporting_link="http://example.org/x"))
        assert exc_info.value.code == ErrorCode.INVALID_LINK

    @pytest.mark.asyncio
    async def test_blank_supporting_link_is_dropped(self, db_session, league):
        entry = await RequestLedger.submit(db_session, replacement_change(supporting_link="   "))
        assert entry["supporting_link"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [1, 3])
    async def test_ri_number_required_for_general_members(self, db_session, league, status):
        member = ReplacementMember(membership_id="RM-900", gender="male", status=status)
        with pytest.raises(ValidationError) as exc_info:
            await RequestLedger.submit(db_session, replacement_change(replacement_member=member))
        assert exc_info.value.message == "RI number is required for general members"

    @pytest.mark.asyncio
    async def test_ri_number_taken_from_member(self, db_session, league):
        member = ReplacementMember(membership_id="RM-900", gender="male", status=1, ri_number=" RI-555 ")
        entry = await RequestLedger.submit(db_session, replacement_change(replacement_member=member))
        assert entry["ri_number"] == "RI-555"

    @pytest.mark.asyncio
    async def test_one_pending_request_per_registration(self, db_session, league):
        await RequestLedger.submit(db_session, replacement_change())

        member = ReplacementMember(membership_id="RM-901", gender="male", status=2)
        with pytest.raises(ConflictError) as exc_info:
            await RequestLedger.submit(db_session, replacement_change(replacement_member=member))
        assert exc_info.value.status_code == 409
        assert await count(db_session, ReplacementRequest) == 1

    @pytest.mark.asyncio
    async def test_gender_mismatch(self, db_session, league):
        member = ReplacementMember(membership_id="RM-900", gender="female", status=2)
        with pytest.raises(ValidationError) as exc_info:
            await RequestLedger.submit(db_session, replacement_change(replacement_member=member))
        assert exc_info.value.code == ErrorCode.GENDER_MISMATCH

    @pytest.mark.asyncio
    async def test_replacement_already_in_sport(self, db_session, league):
        member = ReplacementMember(membership_id="RM-005", gender="male", status=2)
        with pytest.raises(ValidationError) as exc_info:
            await RequestLedger.submit(db_session, replacement_change(replacement_member=member))
        assert exc_info.value.code == ErrorCode.DUPLICATE_SPORT

    @pytest.mark.asyncio
    async def test_replacement_day_limit(self, db_session, league):
        # amal already plays chess (individual) on Day 2, football is a Day 2 team sport
        member = ReplacementMember(membership_id="RM-001", gender="male", status=2)
        change = replacement_change(sport_id=4, registrations_id=2, replacement_member=member)
        with pytest.raises(ValidationError) as exc_info:
            await RequestLedger.submit(db_session, change)
        assert exc_info.value.code == ErrorCode.DAY_LIMIT_EXCEEDED

    @pytest.mark.asyncio
    async def test_other_clubs_registration(self, db_session, league):
        with pytest.raises(ForbiddenError):
            await RequestLedger.submit(db_session, replacement_change(club_id=2))

    @pytest.mark.asyncio
    async def test_unknown_registration(self, db_session, league):
        with pytest.raises(NotFoundError) as exc_info:
            await RequestLedger.submit(db_session, replacement_change(registrations_id=99))
        assert exc_info.value.code == ErrorCode.REGISTRATION_NOT_FOUND

    @pytest.mark.asyncio
    async def test_stale_request_stays_pending(self, db_session, league):
        entry = await RequestLedger.submit(db_session, replacement_change())
        other = replacement_change(replacement_member=ReplacementMember(membership_id="RM-901", gender="male", status=2))
        await RequestLedger.submit(db_session, other, actor_id="admin-1", auto_approve=True)

        with pytest.raises(ValidationError) as exc_info:
            await RequestLedger.approve(db_session, RequestType.REPLACEMENT, entry["id"], "admin-1")
        assert exc_info.value.code == ErrorCode.STALE_REQUEST

        pending = await RequestLedger.list_requests(db_session, RequestType.REPLACEMENT, status=RequestStatus.PENDING)
        assert [p["id"] for p in pending] == [entry["id"]]
        registration = await reload_registration(db_session, 1)
        assert registration.rmis_id == "RM-901"


# =============================================================================
# Swap / move
# =============================================================================

class TestSwapAndMove:

    @pytest.mark.asyncio
    async def test_officer_swap_pending_then_approved(self, db_session, league):
        change = SwapChange(club_id=1, player1_registrations_id=2, player2_registrations_id=6, reason="Fitness", requested_by="officer-1")

        entry = await RequestLedger.submit(db_session, change, actor_id="officer-1")

        assert entry["type"] == "swap"
        assert entry["state"] == "pending"
        assert (entry["sport1_id"], entry["sport2_id"]) == (4, 5)
        assert (await reload_registration(db_session, 2)).sport_id == 4

        approved = await RequestLedger.approve(db_session, RequestType.SWAP, entry["id"], "admin-1")

        assert approved["status"] is True
        assert (await reload_registration(db_session, 2)).sport_id == 5
        assert (await reload_registration(db_session, 6)).sport_id == 4

    @pytest.mark.asyncio
    async def test_officer_swap_day_conflict(self, db_session, league):
        # amal would get football on Day 2 where he already plays chess
        change = SwapChange(club_id=1, player1_registrations_id=1, player2_registrations_id=2, reason="Rotation")
        with pytest.raises(ValidationError) as exc_info:
            await RequestLedger.submit(db_session, change)
        assert exc_info.value.code == ErrorCode.DAY_CONFLICT
        assert exc_info.value.message == "Player one already has another sport registered on the second sport day"
        assert await count(db_session, SwapRequest) == 0

    @pytest.mark.asyncio
    async def test_admin_swap_skips_day_check(self, db_session, league):
        change = SwapChange(club_id=1, player1_registrations_id=1, player2_registrations_id=2, reason="Rotation")

        entry = await RequestLedger.submit(db_session, change, actor_id="admin-1", auto_approve=True)

        assert entry["status"] is True
        assert (await reload_registration(db_session, 1)).sport_id == 4
        assert (await reload_registration(db_session, 2)).sport_id == 1

    @pytest.mark.asyncio
    async def test_swap_gender_mismatch(self, db_session, league):
        change = SwapChange(club_id=1, player1_registrations_id=1, player2_registrations_id=3, reason="Rotation")
        with pytest.raises(ValidationError) as exc_info:
            await RequestLedger.submit(db_session, change, actor_id="admin-1", auto_approve=True)
        assert exc_info.value.message == "Player 1 gender does not match sport 2 requirements"
        assert (await reload_registration(db_session, 1)).sport_id == 1

    @pytest.mark.asyncio
    async def test_swap_same_registration(self, db_session, league):
        change = SwapChange(club_id=1, player1_registrations_id=1, player2_registrations_id=1, reason="Oops")
        with pytest.raises(ValidationError) as exc_info:
            await RequestLedger.submit(db_session, change)
        assert exc_info.value.message == "Cannot swap the same registration"

    @pytest.mark.asyncio
    async def test_swap_across_clubs(self, db_session, league):
        change = SwapChange(club_id=1, player1_registrations_id=2, player2_registrations_id=5, reason="Loan")
        with pytest.raises(ForbiddenError):
            await RequestLedger.submit(db_session, change)

    @pytest.mark.asyncio
    async def test_swap_between_same_players_sports(self, db_session, league):
        change = SwapChange(club_id=1, player1_registrations_id=6, player2_registrations_id=7, reason="Order")
        with pytest.raises(ValidationError) as exc_info:
            await RequestLedger.submit(db_session, change, actor_id="admin-1", auto_approve=True)
        assert exc_info.value.code == ErrorCode.DUPLICATE_SPORT

    @pytest.mark.asyncio
    async def test_one_pending_swap_per_registration(self, db_session, league):
        await RequestLedger.submit(db_session, SwapChange(club_id=1, player1_registrations_id=2, sport2_id=8, reason="Move"))

        with pytest.raises(ConflictError):
            await RequestLedger.submit(
                db_session, SwapChange(club_id=1, player1_registrations_id=6, player2_registrations_id=2, reason="Swap")
            )

    @pytest.mark.asyncio
    async def test_officer_move_pending_then_approved(self, db_session, league):
        change = SwapChange(club_id=1, player1_registrations_id=2, sport2_id=8, reason="Move to badminton")

        entry = await RequestLedger.submit(db_session, change, actor_id="officer-1")

        assert entry["type"] == "move"
        assert entry["player2_registrations_id"] is None
        assert (entry["sport1_id"], entry["sport2_id"]) == (4, 8)
        assert (await reload_registration(db_session, 2)).sport_id == 4

        await RequestLedger.approve(db_session, RequestType.MOVE, entry["id"], "admin-1")
        assert (await reload_registration(db_session, 2)).sport_id == 8

    @pytest.mark.asyncio
    async def test_officer_move_day_conflict(self, db_session, league):
        # amal's chess is on Day 2, football too
        change = SwapChange(club_id=1, player1_registrations_id=1, sport2_id=4, reason="Move")
        with pytest.raises(ValidationError) as exc_info:
            await RequestLedger.submit(db_session, change)
        assert exc_info.value.code == ErrorCode.DAY_CONFLICT

    @pytest.mark.asyncio
    async def test_admin_move_skips_day_check(self, db_session, league):
        change = SwapChange(club_id=1, player1_registrations_id=1, sport2_id=4, reason="Move")
        entry = await RequestLedger.submit(db_session, change, actor_id="admin-1", auto_approve=True)
        assert entry["state"] == "approved"
        assert (await reload_registration(db_session, 1)).sport_id == 4

    @pytest.mark.asyncio
    async def test_move_to_sport_already_held(self, db_session, league):
        change = SwapChange(club_id=1, player1_registrations_id=1, sport2_id=3, reason="Move")
        with pytest.raises(ValidationError) as exc_info:
            await RequestLedger.submit(db_session, change, actor_id="admin-1", auto_approve=True)
        assert exc_info.value.code == ErrorCode.DUPLICATE_SPORT

    @pytest.mark.asyncio
    async def test_move_gender_mismatch(self, db_session, league):
        change = SwapChange(club_id=1, player1_registrations_id=2, sport2_id=2, reason="Move")
        with pytest.raises(ValidationError) as exc_info:
            await RequestLedger.submit(db_session, change)
        assert exc_info.value.message == "Player gender does not match destination sport requirements"

    @pytest.mark.asyncio
    async def test_move_to_missing_sport(self, db_session, league):
        change = SwapChange(club_id=1, player1_registrations_id=2, sport2_id=99, reason="Move")
        with pytest.raises(NotFoundError) as exc_info:
            await RequestLedger.submit(db_session, change)
        assert exc_info.value.message == "Destination sport not found"

    @pytest.mark.asyncio
    async def test_stale_move_not_applied(self, db_session, league):
        entry = await RequestLedger.submit(db_session, SwapChange(club_id=1, player1_registrations_id=2, sport2_id=8, reason="Move"))
        await RequestLedger.submit(
            db_session,
            SwapChange(club_id=1, player1_registrations_id=2, sport2_id=3, reason="Chess instead"),
            actor_id="admin-1",
            auto_approve=True,
        )

        with pytest.raises(ValidationError) as exc_info:
            await RequestLedger.approve(db_session, RequestType.MOVE, entry["id"], "admin-1")
        assert exc_info.value.code == ErrorCode.STALE_REQUEST
        assert (await reload_registration(db_session, 2)).sport_id == 3

    @pytest.mark.asyncio
    async def test_approval_without_revalidation(self, db_session, league, monkeypatch):
        entry = await RequestLedger.submit(db_session, SwapChange(club_id=1, player1_registrations_id=2, sport2_id=8, reason="Move"))
        monkeypatch.setattr(feature_flags, "FEATURE_REVALIDATE_ON_APPROVAL", False)

        approved = await RequestLedger.approve(db_session, RequestType.MOVE, entry["id"], "admin-1")

        assert approved["status"] is True
        assert (await reload_registration(db_session, 2)).sport_id == 8


# =============================================================================
# Atomicity and listing
# =============================================================================

@pytest.mark.asyncio
async def test_failed_write_rolls_back_everything(db_session, league, monkeypatch):
    real_apply = RequestLedger._apply_replacement

    def apply_then_break(db, *args):
        player = real_apply(db, *args)
        # club_name is NOT NULL, so the commit fails after the roster writes
        db.add(Club(club_name=None))
        return player

    monkeypatch.setattr(RequestLedger, "_apply_replacement", staticmethod(apply_then_break))

    with pytest.raises(PersistenceError):
        await RequestLedger.submit(db_session, replacement_change(), actor_id="admin-1", auto_approve=True)

    monkeypatch.undo()
    registration = await reload_registration(db_session, 1)
    assert registration.rmis_id == "RM-001"
    assert await count(db_session, ReplacementRequest) == 0
    assert await count(db_session, ReplacementPlayer) == 0
    assert await db_session.get(Player, "RM-900") is None


@pytest.mark.asyncio
async def test_list_requests_filters(db_session, league):
    first = await RequestLedger.submit(db_session, replacement_change())
    await RequestLedger.reject(db_session, RequestType.REPLACEMENT, first["id"], "admin-1")
    second = await RequestLedger.submit(db_session, replacement_change())

    everything = await RequestLedger.list_requests(db_session, RequestType.REPLACEMENT)
    assert {e["id"] for e in everything} == {first["id"], second["id"]}

    pending = await RequestLedger.list_requests(db_session, RequestType.REPLACEMENT, status=RequestStatus.PENDING)
    assert [e["id"] for e in pending] == [second["id"]]

    rejected = await RequestLedger.list_requests(db_session, RequestType.REPLACEMENT, club_id=1, status=RequestStatus.REJECTED)
    assert [e["id"] for e in rejected] == [first["id"]]

    assert await RequestLedger.list_requests(db_session, RequestType.REPLACEMENT, club_id=2) == []
    assert await RequestLedger.list_requests(db_session, RequestType.SWAP) == []


def test_admin_change_requires_action_fields():
    with pytest.raises(ValidationError) as exc_info:
        AdminPlayerChange(action="swap", admin_id="admin-1", club_id=1, player1_registrations_id=2).to_change()
    assert exc_info.value.message == "Missing required fields for swap"

    change = AdminPlayerChange(
        action="move", admin_id="admin-1", club_id=1, player1_registrations_id=2,
        player2_registrations_id=6, sport2_id=8, reason="Move",
    ).to_change()
    assert change.request_type is RequestType.MOVE
    assert change.player2_registrations_id is None


def test_swap_with_partner_and_destination_rejected():
    with pytest.raises(SchemaValidationError) as exc_info:
        SwapChange(club_id=1, player1_registrations_id=2, player2_registrations_id=6, sport2_id=8, reason="Both")
    assert "not both" in str(exc_info.value)


# =============================================================================
# Review payloads
# =============================================================================

class TestRequestDetails:

    @pytest.mark.asyncio
    async def test_replacement_detail_names_both_players(self, db_session, league):
        entry = await RequestLedger.submit(db_session, replacement_change())

        detail = await RequestLedger.get_request(db_session, RequestType.REPLACEMENT, entry["id"])

        assert detail["club_name"] == "Colombo Lions"
        assert detail["sport"]["sport_name"] == "Cricket"
        assert detail["sport"]["sport_day"] == "Day 1"
        assert detail["replacement_player"]["rmis_id"] == "RM-900"
        assert detail["replacement_player"]["name"] == "Nuwan"
        assert detail["replacement_player"]["nic"] == "901234567V"
        assert detail["original_player"]["rmis_id"] == "RM-001"
        assert detail["original_player"]["name"] == "Amal"
        assert detail["original_player"]["main_player"] is True

    @pytest.mark.asyncio
    async def test_submission_returns_joined_payload(self, db_session, league):
        entry = await RequestLedger.submit(db_session, replacement_change(), actor_id="admin-1", auto_approve=True)

        assert entry["club_name"] == "Colombo Lions"
        assert entry["replacement_player"]["name"] == "Nuwan"
        assert entry["original_player"]["rmis_id"] == "RM-001"

    @pytest.mark.asyncio
    async def test_swap_listing_names_players_and_sports(self, db_session, league):
        await RequestLedger.submit(
            db_session, SwapChange(club_id=1, player1_registrations_id=2, player2_registrations_id=6, reason="Fitness")
        )
        await RequestLedger.submit(db_session, SwapChange(club_id=1, player1_registrations_id=3, sport2_id=8, reason="Move"))

        listed = await RequestLedger.list_requests(db_session, RequestType.SWAP, club_id=1)
        by_type = {e["type"]: e for e in listed}

        swap = by_type["swap"]
        assert swap["club_name"] == "Colombo Lions"
        assert (swap["player1"]["name"], swap["player2"]["name"]) == ("Bimal", "Dinesh")
        assert (swap["sport1"]["sport_name"], swap["sport2"]["sport_name"]) == ("Football", "100m")

        move = by_type["move"]
        assert move["player1"]["name"] == "Chathu"
        assert move["player2"] is None
        assert move["sport2"]["sport_name"] == "Badminton"

    @pytest.mark.asyncio
    async def test_unknown_request(self, db_session, league):
        with pytest.raises(NotFoundError) as exc_info:
            await RequestLedger.get_request(db_session, RequestType.SWAP, 404)
        assert exc_info.value.code == ErrorCode.REQUEST_NOT_FOUND
