"""
Fixtures for tests against the Firestore emulator.

The whole directory is skipped unless ``FIRESTORE_EMULATOR_HOST`` is set, e.g.::

    gcloud emulators firestore start --host-port=localhost:8080
    FIRESTORE_EMULATOR_HOST=localhost:8080 pytest tests/integration

Blob storage stays in memory (``blobs`` from the parent conftest); only the
document store is real.
"""

import os

import httpx
import pytest
import pytest_asyncio

from social_scheduler import FirestoreDB

EMULATOR_HOST = os.environ.get("FIRESTORE_EMULATOR_HOST", "").strip()
DATABASE = os.environ.get("FIRESTORE_DATABASE") or None
# ``or`` so an empty string exported by CI still falls back
PROJECT_ID = os.environ.get("GOOGLE_CLOUD_PROJECT") or "demo-social-scheduler"


def pytest_collection_modifyitems(config, items):
    if EMULATOR_HOST:
        return
    skip = pytest.mark.skip(reason="FIRESTORE_EMULATOR_HOST is not set")
    here = os.path.dirname(__file__)
    for item in items:
        if str(item.fspath).startswith(here):
            item.add_marker(skip)


@pytest.fixture()
def firestore_db():
    """
    Function-scoped so each test gets an AsyncClient bound to its own event
    loop.
    """
    return FirestoreDB(project_id=PROJECT_ID, database=DATABASE, emulator_host=EMULATOR_HOST)


@pytest.fixture()
def raw_client(firestore_db):
    return firestore_db.client


@pytest_asyncio.fixture(autouse=True)
async def clean_firestore(firestore_db):
    """Wipe the emulator before and after each test."""
    await _wipe_emulator()
    yield
    await _wipe_emulator()


async def _wipe_emulator():
    db_name = DATABASE or "(default)"
    url = (
        f"http://{EMULATOR_HOST}/emulator/v1/projects/"
        f"{PROJECT_ID}/databases/{db_name}/documents"
    )
    async with httpx.AsyncClient() as client:
        await client.delete(url)
