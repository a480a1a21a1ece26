"""Shared fixtures: in-memory store, fake identity provider, API client."""

import hashlib
import json
import os

# Must be set before config is first imported
ADMIN_EMAIL = "admin@example.org"
os.environ["ADMIN_EMAIL_HASH"] = hashlib.sha256(ADMIN_EMAIL.encode("utf-8")).hexdigest()
os.environ["FIREBASE_PROJECT_ID"] = ""
os.environ["FIREBASE_API_KEY"] = ""
os.environ["RATE_LIMIT"] = "1000"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import routes  # noqa: E402
from arrests import ArrestRecords  # noqa: E402
from auth import IdentityProvider, User  # noqa: E402
from cache import geo_cache, token_cache  # noqa: E402
from dashboard import Dashboard  # noqa: E402
from geo import BoundarySource  # noqa: E402
from media import MediaLibrary  # noqa: E402
from store import MemoryDocumentStore  # noqa: E402

ADMIN_TOKEN = "admin-token"
USER_TOKEN = "user-token"


class FakeIdentity(IdentityProvider):
    def __init__(self, users: dict):
        self.users = users
        self.lookups = 0

    async def resolve(self, id_token):
        self.lookups += 1
        return self.users.get(id_token)


def arrest_docs(counts: dict) -> dict:
    """{"arrests": {key: document}} for a MemoryDocumentStore."""
    return {
        "arrests": {
            key: {"region": key, "arrestCount": arrests, "firCount": fir}
            for key, (arrests, fir) in counts.items()
        }
    }


SAMPLE_GEOJSON = {
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "properties": {"name": "Maharashtra"}, "geometry": None},
        {"type": "Feature", "properties": {"name": "NCT of Delhi"}, "geometry": None},
        {"type": "Feature", "properties": {"NAME": "Orissa"}, "geometry": None},
        {"type": "Feature", "properties": {"name": "Lakshadweep"}, "geometry": None},
        {"type": "Feature", "properties": {"name": "Atlantis"}, "geometry": None},
    ],
}


@pytest.fixture(autouse=True)
def _reset_shared_state():
    geo_cache.clear()
    token_cache.clear()
    routes._rate_store.clear()
    yield
    routes.app.dependency_overrides.clear()


@pytest.fixture
def identity():
    return FakeIdentity({
        ADMIN_TOKEN: User(email=ADMIN_EMAIL, display_name="Admin", id_token=ADMIN_TOKEN),
        USER_TOKEN: User(email="someone@example.org", display_name="", id_token=USER_TOKEN),
    })


@pytest.fixture
def store():
    return MemoryDocumentStore(arrest_docs({
        "maharashtra": (100, 40),
        "delhi": (30, 10),
        "cbi": (20, 5),
    }))


@pytest.fixture
def records(store, identity):
    return ArrestRecords(store, identity)


@pytest.fixture
def media_library(store, identity):
    return MediaLibrary(store, identity)


@pytest.fixture
def geojson_path(tmp_path):
    path = tmp_path / "india-states.json"
    path.write_text(json.dumps(SAMPLE_GEOJSON), encoding="utf-8")
    return path


@pytest.fixture
def dashboard(records, geojson_path):
    return Dashboard(records, BoundarySource(str(geojson_path)))


@pytest.fixture
def api(dashboard, records, media_library, identity):
    routes.app.dependency_overrides[routes.get_dashboard] = lambda: dashboard
    routes.app.dependency_overrides[routes.get_arrest_records] = lambda: records
    routes.app.dependency_overrides[routes.get_media_library] = lambda: media_library
    routes.app.dependency_overrides[routes.get_identity] = lambda: identity
    return TestClient(routes.app)


def admin_headers() -> dict:
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


def user_headers() -> dict:
    return {"Authorization": f"Bearer {USER_TOKEN}"}
