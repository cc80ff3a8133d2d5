import os
import random

# Keep the app's own engine off disk; every test talks to test_engine below.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from worldcup.data.teams import GROUPS_BY_ID  # noqa: E402
from worldcup.database import get_session  # noqa: E402
from worldcup.main import app  # noqa: E402
from worldcup.models.stage import Stage  # noqa: E402
from worldcup.routes.matches import get_fallback, get_result_source  # noqa: E402
from worldcup.services.bracket_builder import build_group_schedule  # noqa: E402
from worldcup.services.propagation_engine import ResultEvent, TournamentEngine  # noqa: E402
from worldcup.services.result_source import FallbackSimulator  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. Use sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Tables are dropped and recreated per test (see session_fixture)
# 4. App dependencies overridden before TestClient() (see client_fixture)
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a freshly created schema"""
    from worldcup.models.match import Match  # noqa: F401
    from worldcup.models.tournament import Tournament  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session and result sources

    No remote predictor, and a seeded fallback so simulations are repeatable.
    """
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_result_source] = lambda: None
    app.dependency_overrides[get_fallback] = lambda: FallbackSimulator(random.Random(2026))

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# In-memory engines (no database)
# ============================================================================


def favourite_wins(engine: TournamentEngine, stage: Stage) -> None:
    """
    Finish every READY match of a stage 1-0.

    Group matches go to the team drawn earlier in its group (so every group
    finishes in draw order); knockout matches go to the home side.
    """
    events = []
    for m in engine.by_stage(stage):
        if m.is_finished or m.home_team_id is None or m.away_team_id is None:
            continue
        if stage == Stage.group:
            order = GROUPS_BY_ID[m.group_id].team_ids
            home_first = order.index(m.home_team_id) < order.index(m.away_team_id)
        else:
            home_first = True
        events.append(ResultEvent(m.match_code, 1, 0) if home_first else ResultEvent(m.match_code, 0, 1))
    engine.apply_results(events)


@pytest.fixture
def play_stage():
    return favourite_wins


@pytest.fixture
def engine() -> TournamentEngine:
    """Fresh tournament: 72 seeded group matches, nothing played."""
    return TournamentEngine(build_group_schedule())


@pytest.fixture
def played_groups(engine: TournamentEngine) -> TournamentEngine:
    """Every group finished in draw order; no bracket yet."""
    favourite_wins(engine, Stage.group)
    return engine


@pytest.fixture
def bracket(played_groups: TournamentEngine) -> TournamentEngine:
    """Group stage closed; Round of 32 seeded, later rounds empty."""
    played_groups.close_group_stage()
    return played_groups
