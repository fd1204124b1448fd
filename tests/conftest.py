"""
Pytest configuration and fixtures
"""
import os
import sys
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

# Keep tests independent of any local .env: no provider keys, no Firestore,
# and a throwaway SQLite file for the import-time init_db().
for _name in (
    'GOOGLE_PLACES_API_KEY', 'GOOGLE_MAPS_API_KEY', 'GROQ_API_KEY', 'GOOGLE_CLOUD_API_KEY',
    'GOOGLE_CLIENT_ID', 'GOOGLE_CLIENT_SECRET', 'FIREBASE_CREDENTIALS_PATH', 'FIREBASE_PROJECT_ID',
):
    os.environ[_name] = ''
os.environ['DATABASE_URL'] = os.path.join(tempfile.gettempdir(), 'leisure_finder_test.db')

# Add backend modules to path
backend_dir = Path(__file__).parent.parent / 'backend'
sys.path.insert(0, str(backend_dir))

import config  # noqa: E402
import db  # noqa: E402
import places  # noqa: E402


def json_response(payload, ok=True, status_code=200):
    """Stand-in for a requests.Response carrying a JSON body."""
    response = Mock()
    response.ok = ok
    response.status_code = status_code
    response.json.return_value = payload
    response.text = str(payload)
    return response


def groq_reply(content):
    return json_response({"choices": [{"message": {"content": content}}]})


@pytest.fixture
def temp_db(monkeypatch):
    """Point the SQLite store at a fresh temporary database."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    monkeypatch.setattr(db, 'DB_PATH', db_path)
    db.init_db()

    yield db_path

    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture(autouse=True)
def clear_place_cache():
    places.place_details_cache.clear()
    yield
    places.place_details_cache.clear()


@pytest.fixture
def places_key(monkeypatch):
    monkeypatch.setattr(config, 'GOOGLE_PLACES_API_KEY', 'test-places-key')


@pytest.fixture
def groq_key(monkeypatch):
    monkeypatch.setattr(config, 'GROQ_API_KEY', 'test-groq-key')


@pytest.fixture
def cloud_key(monkeypatch):
    monkeypatch.setattr(config, 'GOOGLE_CLOUD_API_KEY', 'test-cloud-key')


@pytest.fixture
def app(temp_db):
    import app as app_module
    app_module.app.config.update(TESTING=True)
    yield app_module.app


@pytest.fixture
def client(app):
    return app.test_client()


def make_place(place_id, name=None, types=None, **extra):
    place = {
        'place_id': place_id,
        'name': name or f"Place {place_id}",
        'vicinity': f"{place_id} Main St",
        'geometry': {'location': {'lat': 45.52, 'lng': -122.68}},
        'types': types or ['park', 'point_of_interest'],
        'rating': 4.5,
    }
    place.update(extra)
    return place
