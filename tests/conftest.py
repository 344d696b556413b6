"""Shared test fixtures for quotidian."""

import sys
from pathlib import Path

import pytest

# Add src (and this directory, for fakes) to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from fakes import FakeRemoteStore, FakeSession  # noqa: E402


@pytest.fixture(autouse=True)
def reset_metrics():
    from observability import metrics

    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "quotidian.db"


@pytest.fixture
def local(db_path):
    from storage import LocalStore

    return LocalStore(db_path)


@pytest.fixture
def sample_quotes():
    from catalog import Quote

    return [
        Quote(id="q1", text="Know thyself.", author="Socrates", themes=("wisdom", "self-knowledge")),
        Quote(id="q2", text="Be one.", author="Marcus Aurelius", themes=("virtue", "action")),
        Quote(id="q3", text="Nature does not hurry.", author="Lao Tzu", themes=("patience",)),
        Quote(id="q4", text="One must imagine Sisyphus happy.", author="Albert Camus", themes=("meaning",)),
        Quote(id="q5", text="Condemned to be free.", author="Jean-Paul Sartre", themes=()),
    ]


@pytest.fixture
def catalog(sample_quotes):
    from catalog import QuoteCatalog

    return QuoteCatalog(sample_quotes)


@pytest.fixture
def remote():
    return FakeRemoteStore()


@pytest.fixture
def session():
    return FakeSession("user-1")


@pytest.fixture
def ctx(local, remote, session):
    from sync import SyncContext

    return SyncContext(local, remote=remote, session=session)


@pytest.fixture
def connectivity():
    from sync import Connectivity

    return Connectivity(online=True)


@pytest.fixture
def service(ctx, db_path, connectivity):
    from sync import SyncQueue, SyncService
    from sync.retry import sync_retrying

    return SyncService(
        ctx,
        SyncQueue(db_path),
        connectivity,
        attempt_timeout=5.0,
        retrying=lambda: sync_retrying(max_attempts=1, min_wait=0, max_wait=0),
    )
