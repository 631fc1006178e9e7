"""Shared pytest fixtures for cricket-scoring-api tests."""
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncGenerator, Callable, Generator, List, Optional

# Settings are read at import time; pin the test environment before app imports
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SCORER_API_KEY"] = ""
os.environ["ADMIN_API_KEY"] = ""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from app.services.scoring.ball_validator import BallEvent, WicketEvent  # noqa: E402


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create fresh test database session with isolated in-memory database."""
    from app.models import Base

    # StaticPool keeps a single connection so every session sees the same
    # in-memory database, including the ones opened while serving requests.
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestSessionLocal()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture(scope="function")
async def async_client(db_session: Session) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for testing FastAPI endpoints."""
    from app.main import app
    from app.core.database import get_db

    # Override database dependency to use test session
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


# =============================================================================
# SCORING FIXTURES
# =============================================================================

@dataclass
class TournamentContext:
    """A seeded tournament: two teams of eleven."""
    tournament_id: str
    team1_id: str
    team2_id: str
    team1_players: List[str] = field(default_factory=list)
    team2_players: List[str] = field(default_factory=list)

    def players_of(self, team_id: str) -> List[str]:
        return self.team1_players if team_id == self.team1_id else self.team2_players


@dataclass
class MatchContext:
    """A match ready for (or in) play, with its sides resolved."""
    tournament: TournamentContext
    match_id: str
    batting_first_id: str
    bowling_first_id: str
    inning1_id: Optional[str] = None
    inning2_id: Optional[str] = None

    @property
    def batters_first(self) -> List[str]:
        return self.tournament.players_of(self.batting_first_id)

    @property
    def bowlers_first(self) -> List[str]:
        return self.tournament.players_of(self.bowling_first_id)


def _seed_team(registry, tournament_id: str, name: str, short_name: str) -> tuple:
    team = registry.create_team(tournament_id, name, short_name, city=f"{name} City")
    players = []
    for jersey in range(1, 12):
        role = "wicket-keeper" if jersey == 1 else ("bowler" if jersey > 7 else "batsman")
        player = registry.create_player(team["id"], f"{short_name} Player {jersey}", jersey, role)
        players.append(player["id"])
    return team["id"], players


@pytest.fixture
def tournament(db_session: Session) -> TournamentContext:
    """A two-over tournament with two full squads."""
    from app.services.registry_service import RegistryService

    registry = RegistryService(db_session)
    created = registry.create_tournament("Test Premier League", 2026, overs_per_innings=2)
    team1_id, team1_players = _seed_team(registry, created["id"], "Chennai Strikers", "CHS")
    team2_id, team2_players = _seed_team(registry, created["id"], "Mumbai Mariners", "MUM")
    return TournamentContext(
        tournament_id=created["id"],
        team1_id=team1_id,
        team2_id=team2_id,
        team1_players=team1_players,
        team2_players=team2_players,
    )


def xi_entries(player_ids: List[str]):
    """A valid playing XI: first player keeps wicket, second captains."""
    from app.services.scoring import XIEntry

    return [
        XIEntry(player=pid, is_captain=index == 1, is_wicket_keeper=index == 0)
        for index, pid in enumerate(player_ids)
    ]


@pytest.fixture
def make_match(db_session: Session, tournament: TournamentContext) -> Callable[..., MatchContext]:
    """
    Factory for matches past the toss with both XIs locked.

    ``start=True`` also opens inning 1. Team 1 wins every toss and bats unless
    ``team1_bats`` is False.
    """
    from app.services.registry_service import RegistryService
    from app.services.scoring import MatchSetupService, ScoringService

    counter = {"next": 1}

    def _make(start: bool = True, team1_bats: bool = True) -> MatchContext:
        number = counter["next"]
        counter["next"] += 1

        match = RegistryService(db_session).create_match(
            tournament.tournament_id, number, tournament.team1_id, tournament.team2_id, venue="Test Ground"
        )
        setup = MatchSetupService(db_session)
        setup.record_toss(match["id"], tournament.team1_id, "bat" if team1_bats else "bowl")
        setup.set_playing_xi(match["id"], tournament.team1_id, xi_entries(tournament.team1_players))
        setup.set_playing_xi(match["id"], tournament.team2_id, xi_entries(tournament.team2_players))

        batting = tournament.team1_id if team1_bats else tournament.team2_id
        bowling = tournament.team2_id if team1_bats else tournament.team1_id
        context = MatchContext(
            tournament=tournament,
            match_id=match["id"],
            batting_first_id=batting,
            bowling_first_id=bowling,
        )
        if start:
            inning = ScoringService(db_session).start_inning(match["id"], 1)
            context.inning1_id = inning["id"]
        return context

    return _make


@pytest.fixture
def live_match(make_match) -> MatchContext:
    """A match with inning 1 in progress."""
    return make_match()


# =============================================================================
# BALL HELPERS
# =============================================================================

def make_ball(
    over: int,
    ball_in_over: int,
    bowler: str,
    batsman: str,
    non_striker: str,
    runs: int = 0,
    extras: int = 0,
    extra_type: Optional[str] = None,
    is_legal: bool = True,
    wicket_type: Optional[str] = None,
    fielder: Optional[str] = None,
) -> BallEvent:
    """Build a BallEvent; a wicket always dismisses the striker."""
    wicket = None
    if wicket_type:
        wicket = WicketEvent(type=wicket_type, player_out=batsman, fielder=fielder)
    return BallEvent(
        over=over,
        ball_in_over=ball_in_over,
        bowler=bowler,
        batsman=batsman,
        non_striker=non_striker,
        is_legal=is_legal,
        runs_batsman=runs,
        runs_extras=extras,
        extra_type=extra_type,
        wicket=wicket,
    )


class InningsScorer:
    """
    Drives deliveries through the scoring service in sequence.

    Every delivery, legal or not, takes the next ball-in-over slot. A dismissed
    striker is replaced with the next batsman in the list; strike never rotates.
    """

    def __init__(self, service, inning_id: str, batters: List[str], bowlers: List[str]):
        self.service = service
        self.inning_id = inning_id
        self.batters = list(batters)
        self.bowlers = list(bowlers)
        self.striker = 0
        self.non_striker = 1
        self.next_batter = 2
        self.slots = 0
        self.legal = 0

    @property
    def position(self) -> tuple:
        return self.slots // 6 + 1, self.slots % 6 + 1

    def bowler(self) -> str:
        over, _ = self.position
        return self.bowlers[-1 - (over - 1) % 2]

    def _record(self, is_legal: bool, **kwargs):
        over, ball_in_over = self.position
        event = make_ball(
            over,
            ball_in_over,
            self.bowler(),
            self.batters[self.striker],
            self.batters[self.non_striker],
            is_legal=is_legal,
            **kwargs,
        )
        response = self.service.record_ball(self.inning_id, event)
        self.slots += 1
        if is_legal:
            self.legal += 1
        return response

    def ball(self, runs: int = 0, wicket_type: Optional[str] = None, fielder: Optional[str] = None):
        response = self._record(True, runs=runs, wicket_type=wicket_type, fielder=fielder)
        if wicket_type:
            self.striker = self.next_batter
            self.next_batter += 1
        return response

    def extra(self, extra_type: str = "wide", extras: int = 1):
        """Record a wide or no-ball; it takes a slot but not a legal ball."""
        return self._record(False, extras=extras, extra_type=extra_type)

    def balls(self, runs_per_ball: List[int]):
        response = None
        for runs in runs_per_ball:
            response = self.ball(runs)
        return response

    def undo(self):
        """Undo the last ball; only valid when it was a legal non-wicket ball."""
        response = self.service.undo_last_ball(self.inning_id)
        self.slots -= 1
        self.legal -= 1
        return response


@pytest.fixture
def ball_event() -> Callable[..., BallEvent]:
    """The make_ball builder, for tests that construct deliveries by hand."""
    return make_ball


@pytest.fixture
def scorer(db_session: Session) -> Callable[..., InningsScorer]:
    """Factory for an InningsScorer bound to the test session."""
    from app.services.scoring import ScoringService

    def _scorer(inning_id: str, batters: List[str], bowlers: List[str]) -> InningsScorer:
        return InningsScorer(ScoringService(db_session), inning_id, batters, bowlers)

    return _scorer
