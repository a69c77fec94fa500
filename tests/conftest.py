import pytest

from priorauth_rulesets.engine import IntakeEngine
from priorauth_rulesets.ruleset import RulesetStore


@pytest.fixture(scope="session")
def store():
    s = RulesetStore()
    s.load()
    return s


@pytest.fixture
def engine(store):
    return IntakeEngine(store)
