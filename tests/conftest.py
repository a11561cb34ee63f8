"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import copy
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.delivery import Card, CardSet, SetStore  # noqa: E402
from src.learning import load_method, load_method_source  # noqa: E402
from src.scripting import Sandbox, build_capabilities  # noqa: E402

# 2023-11-14T22:13:20Z
EPOCH_START = 1_700_000_000


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FakeClock:
    """Settable time source for scripts."""

    def __init__(self, now: float = EPOCH_START):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# Method whose weights come straight from card data
WEIGHTED_METHOD = '''
RESPONSES = ["good", "bad"]


def get_default_metadata():
    return {"w": 1.0}


def get_weight(data, difficult):
    return data["w"]


def adjust_card(response, data, difficult):
    if response == "good":
        data["w"] = 0.0
    return data, response == "bad"
'''


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sandbox(clock):
    """Sandbox whose scripts see the fake clock."""
    return Sandbox(build_capabilities(clock))


@pytest.fixture
def sm2(sandbox):
    return load_method("sm2", sandbox)


@pytest.fixture
def speed(sandbox):
    return load_method("speed", sandbox)


@pytest.fixture
def weighted_method(sandbox):
    return load_method_source("weighted", WEIGHTED_METHOD, sandbox)


@pytest.fixture
def make_set():
    """Build a set of n cards bound to a method, with the given data per card."""

    def _make(method_name: str, count: int = 3, data=None) -> CardSet:
        cards = [
            Card(question=f"Q{i}", answer=f"A{i}", data=data(i) if callable(data) else copy.deepcopy(data))
            for i in range(count)
        ]
        return CardSet(name="sample", method=method_name, cards=cards)

    return _make


@pytest.fixture
def store(tmp_path):
    return SetStore(tmp_path / "sample.json")
