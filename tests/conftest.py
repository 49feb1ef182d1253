import pytest

from zipindex.ingest import IngestionEngine, LifecycleTracker, WalkLimits
from zipindex.storage import IndexStoreSQLite


@pytest.fixture
def store(tmp_path):
    store = IndexStoreSQLite(tmp_path / "index.db")
    store.initialize()
    return store


@pytest.fixture
def tracker(store):
    return LifecycleTracker(store)


@pytest.fixture
def engine(store, tracker):
    return IngestionEngine(store, tracker, WalkLimits())


@pytest.fixture
def project(store, tmp_path):
    return store.create_project(
        user_id=1,
        name="demo",
        original_filename="demo.zip",
        archive_path=str(tmp_path / "demo.zip"),
        archive_size=0,
    )
