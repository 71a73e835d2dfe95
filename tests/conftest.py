import os

import pytest
from factories import make_attempt, make_session

from mnemos.domain.analytics.models import Word, WordPerformance


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep a developer's ~/.mnemos.toml and MNEMOS_* variables out of the tests."""
    home = tmp_path / "isolated-home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("MNEMOS_"):
            monkeypatch.delenv(key)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def sessions():
    """Five daily one-minute sessions scoring 50, 60, 70, 80, 90."""
    return [make_session(i, pct, total_time_ms=60_000) for i, pct in enumerate([50, 60, 70, 80, 90])]


@pytest.fixture
def untimed_sessions():
    """The same five sessions without a recorded duration, as the app often stores them."""
    return [make_session(i, pct) for i, pct in enumerate([50, 60, 70, 80, 90])]


@pytest.fixture
def word():
    return Word(id="w1", english="house", italian="casa", chapter="1", group="nouns")


@pytest.fixture
def performance():
    """Attempts: correct, correct, wrong (with a hint)."""
    return WordPerformance(
        word_id="w1",
        attempts=[
            make_attempt(0, True, time_spent_ms=3000),
            make_attempt(1, True, time_spent_ms=5000),
            make_attempt(2, False, used_hint=True, hints_count=1, time_spent_ms=7000),
        ],
    )
