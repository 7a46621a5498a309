"""
Shared fixtures: an in-memory database per test and a small seeded league.
"""
from types import SimpleNamespace
from typing import AsyncGenerator

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from league_engine.orm.base import Base
from league_engine.orm.club import Club
from league_engine.orm.sport import Sport, SportType
from league_engine.orm.player import Player
from league_engine.orm.registration import Registration
from league_engine.orm.bracket import Team, Match

# Test database setup
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def league(db_session: AsyncSession) -> SimpleNamespace:
    """
    Two clubs, a spread of sports over four days, and registrations:

    club 1: amal (cricket d1, chess d2), bimal (football d2),
            chathu (netball d1), dinesh (100m + 200m d3)
    club 2: eshan (cricket d1)
    """
    lions = Club(club_id=1, club_name="Colombo Lions")
    tigers = Club(club_id=2, club_name="Kandy Tigers")
    db_session.add_all([lions, tigers])

    sports = SimpleNamespace(
        cricket=Sport(sport_id=1, sport_name="Cricket", gender_type="male", sport_type=SportType.TEAM.value, sport_day="Day 1", max_count=11),
        netball=Sport(sport_id=2, sport_name="Netball", gender_type="female", sport_type=SportType.TEAM.value, sport_day="Day 1", max_count=7),
        chess=Sport(sport_id=3, sport_name="Chess", gender_type="open", sport_type=SportType.INDIVIDUAL.value, sport_day="Day 2", max_count=2),
        football=Sport(sport_id=4, sport_name="Football", gender_type="male", sport_type=SportType.TEAM.value, sport_day="Day 2", max_count=11),
        sprint_100=Sport(sport_id=5, sport_name="100m", gender_type="m", sport_type=SportType.TRACK_INDIVIDUAL.value, sport_day="Day 3", max_count=2),
        sprint_200=Sport(sport_id=6, sport_name="200m", gender_type="m", sport_type=SportType.TRACK_INDIVIDUAL.value, sport_day="Day 3", max_count=2),
        sprint_400=Sport(sport_id=7, sport_name="400m", gender_type="m", sport_type=SportType.TRACK_INDIVIDUAL.value, sport_day="Day 3", max_count=2),
        badminton=Sport(sport_id=8, sport_name="Badminton", gender_type="mixed", sport_type=SportType.INDIVIDUAL.value, sport_day="Day 4", max_count=4),
    )
    db_session.add_all(vars(sports).values())

    players = SimpleNamespace(
        amal=Player(rmis_id="RM-001", name="Amal", club_id=1, gender="Male", status=2),
        bimal=Player(rmis_id="RM-002", name="Bimal", club_id=1, gender="male", status=2),
        chathu=Player(rmis_id="RM-003", name="Chathu", club_id=1, gender="female", status=2),
        dinesh=Player(rmis_id="RM-004", name="Dinesh", club_id=1, gender="M", status=2),
        eshan=Player(rmis_id="RM-005", name="Eshan", club_id=2, gender="male", status=2),
    )
    db_session.add_all(vars(players).values())

    regs = SimpleNamespace(
        amal_cricket=Registration(id=1, rmis_id="RM-001", sport_id=1, club_id=1, main_player=True),
        bimal_football=Registration(id=2, rmis_id="RM-002", sport_id=4, club_id=1, main_player=True),
        chathu_netball=Registration(id=3, rmis_id="RM-003", sport_id=2, club_id=1, main_player=True),
        amal_chess=Registration(id=4, rmis_id="RM-001", sport_id=3, club_id=1, main_player=False),
        eshan_cricket=Registration(id=5, rmis_id="RM-005", sport_id=1, club_id=2, main_player=True),
        dinesh_100=Registration(id=6, rmis_id="RM-004", sport_id=5, club_id=1, main_player=True),
        dinesh_200=Registration(id=7, rmis_id="RM-004", sport_id=6, club_id=1, main_player=True),
    )
    db_session.add_all(vars(regs).values())

    await db_session.commit()
    return SimpleNamespace(clubs=(lions, tigers), sports=sports, players=players, regs=regs)


@pytest_asyncio.fixture
async def bracket(db_session: AsyncSession) -> SimpleNamespace:
    """
    Four-team cricket bracket: two semi finals feeding a final.
    Team 4 has no club, so it shows as TBD.
    """
    clubs = [Club(club_id=i, club_name=name) for i, name in enumerate(["Lions", "Tigers", "Eagles"], start=1)]
    db_session.add_all(clubs)
    db_session.add(Sport(sport_id=1, sport_name="Cricket", gender_type="male", sport_type=SportType.TEAM.value, sport_day="Day 1"))
    db_session.add(Sport(sport_id=2, sport_name="Football", gender_type="male", sport_type=SportType.TEAM.value, sport_day="Day 2"))

    teams = [
        Team(team_id=1, club_id=1, sport_id=1, seed_number=1),
        Team(team_id=2, club_id=2, sport_id=1, seed_number=4),
        Team(team_id=3, club_id=3, sport_id=1, seed_number=2),
        Team(team_id=4, club_id=None, sport_id=1, seed_number=3),
    ]
    db_session.add_all(teams)

    semi1 = Match(match_id=1, sport_id=1, team1_id=1, team2_id=2, round_id=3, match_order=1)
    semi2 = Match(match_id=2, sport_id=1, team1_id=3, team2_id=4, round_id=3, match_order=2)
    db_session.add_all([semi1, semi2])
    await db_session.flush()

    final = Match(match_id=3, sport_id=1, round_id=5, match_order=1, parent_match1_id=1, parent_match2_id=2)
    db_session.add(final)
    await db_session.commit()
    return SimpleNamespace(teams=teams, semi1=semi1, semi2=semi2, final=final)
