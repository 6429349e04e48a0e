from pathlib import Path
from unittest.mock import MagicMock

import pytest

from pollster.scheduler.pollster import Pollster
from tests.configs.fakes import (
    MINUTE_MS,
    DeferredExecutor,
    FakeClock,
    FakeDocument,
    RecordingSubscriber,
    iso,
)

FIXTURE_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def executor():
    return DeferredExecutor()


@pytest.fixture
def source(clock):
    """Feed source answering every pull with an entry updated two minutes ago."""
    source = MagicMock()
    source.pull.side_effect = lambda query: FakeDocument(
        updated=iso(clock.now - 2 * MINUTE_MS),
        entry_id=f"{query.feed_id}-entry",
        entry_updated=iso(clock.now - 2 * MINUTE_MS),
    )
    return source


@pytest.fixture
def pollster(source, executor, clock):
    return Pollster(
        source,
        executor=executor,
        clock=clock,
        absent_retry_base_ms=MINUTE_MS,
        absent_retry_limit=2,
    )


@pytest.fixture
def subscriber():
    return RecordingSubscriber("S1")


@pytest.fixture
def atom_fixture():
    """Return the text of an Atom fixture file by name."""
    def _load(name: str) -> str:
        return (FIXTURE_DIR / "atom" / name).read_text(encoding="utf-8")
    return _load
