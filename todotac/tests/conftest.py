"""
Pytest fixtures for TodoTac tests.
"""

import pytest

from ..errors import OracleError
from ..session import GameSession
from .helpers import FakeMoveOracle, FakeTaskOracle


@pytest.fixture
def task_oracle() -> FakeTaskOracle:
    return FakeTaskOracle()


@pytest.fixture
def move_oracle() -> FakeMoveOracle:
    return FakeMoveOracle()


@pytest.fixture
def session(task_oracle: FakeTaskOracle, move_oracle: FakeMoveOracle) -> GameSession:
    """A session with no display delay that leaves opponent turns to the test."""
    return GameSession(task_oracle, move_oracle, move_delay=0, auto_opponent=False)


@pytest.fixture
def started_session(session: GameSession) -> GameSession:
    session.start()
    return session


@pytest.fixture
def oracle_failure() -> OracleError:
    return OracleError("service unavailable", oracle="fake")
