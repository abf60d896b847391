"""
Pytest configuration and shared fixtures.

Environment is set before the app is imported: config is read at import time.
"""

import os
import tempfile
from pathlib import Path

os.environ["JWT_SECRET"] = "test-secret"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["BOOTSTRAP_ADMIN_EMAIL"] = "admin@gardenconnect.test"
os.environ["BOOTSTRAP_ADMIN_PASSWORD"] = "admin-password"
os.environ["GARDENCONNECT_DB"] = "sqlite+aiosqlite:///" + str(
    Path(tempfile.mkdtemp()) / "gardenconnect-test.db"
)
os.environ.pop("REDIS_URL", None)
os.environ.pop("RABBIT_URL", None)

import pytest
from fastapi.testclient import TestClient

from app.main import app

ADMIN_EMAIL = os.environ["BOOTSTRAP_ADMIN_EMAIL"]
ADMIN_PASSWORD = os.environ["BOOTSTRAP_ADMIN_PASSWORD"]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def client():
    """Test client with a fresh in-memory store per test."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_headers(client):
    """Bearer headers for the bootstrap admin."""
    r = client.post("/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def coordinator_headers(client, admin_headers):
    """Bearer headers for a coordinator account registered by the admin."""
    r = client.post(
        "/auth/register",
        json={"email": "coord@gardenconnect.test", "password": "coord-password", "roles": ["coordinator"]},
        headers=admin_headers,
    )
    assert r.status_code == 201
    r = client.post("/auth/login", json={"email": "coord@gardenconnect.test", "password": "coord-password"})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def volunteer_payload():
    """Valid volunteer sign-up body."""
    return {
        "name": "Ada Green",
        "email": "ada@example.com",
        "skills": ["Weeding", "Harvesting"],
        "availability": [{"day": "Monday", "time": "Morning"}],
        "location": "Northside",
        "experience": "some",
    }


@pytest.fixture
def garden_payload():
    """Valid garden body."""
    return {
        "garden_name": "Elm Street Plots",
        "location": "Elm Street",
        "contact_email": "elm@example.com",
        "skills_needed": ["Weeding", "Gardening/Planting"],
        "needs_schedule": [
            {"day": "Monday", "time": "Morning"},
            {"day": "Tuesday", "time": "Evening"},
        ],
        "notes": "Bring gloves",
    }


class FakePipeline:
    def __init__(self, redis):
        self.redis = redis
        self.calls = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return queue

    async def execute(self):
        results = []
        for name, args, kwargs in self.calls:
            results.append(await getattr(self.redis, name)(*args, **kwargs))
        self.calls = []
        return results


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the cache and rate limiter."""

    def __init__(self):
        self.values = {}
        self.sets = {}
        self.ttls = {}

    async def get(self, key):
        return self.values.get(key)

    async def set(self, key, value, ex=None):
        self.values[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def incr(self, key):
        self.values[key] = int(self.values.get(key, 0)) + 1
        return self.values[key]

    async def expire(self, key, seconds):
        self.ttls[key] = seconds
        return True

    async def sadd(self, key, *members):
        s = self.sets.setdefault(key, set())
        before = len(s)
        s.update(members)
        return len(s) - before

    async def srem(self, key, *members):
        s = self.sets.get(key, set())
        removed = len(s & set(members))
        s.difference_update(members)
        return removed

    async def smembers(self, key):
        return set(self.sets.get(key, set()))

    async def delete(self, *keys):
        deleted = 0
        for key in keys:
            if self.values.pop(key, None) is not None:
                deleted += 1
            if self.sets.pop(key, None) is not None:
                deleted += 1
        return deleted

    def pipeline(self):
        return FakePipeline(self)


@pytest.fixture
def fake_redis():
    return FakeRedis()
