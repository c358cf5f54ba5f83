"""Tests for the request rate limiter."""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from fastapi import FastAPI
from fastapi.testclient import TestClient

from backend.middleware.rate_limit import RateLimitMiddleware


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(clock):
    app = FastAPI()

    @app.get("/api/health")
    async def health():
        return {"status": "healthy"}

    @app.get("/api/components")
    async def components():
        return {}

    @app.post("/api/designs/{design_id}/simulate")
    async def simulate(design_id: str):
        return {"designId": design_id}

    app.add_middleware(RateLimitMiddleware, requests_per_minute=5, batch_requests_per_minute=2, clock=clock)
    return TestClient(app)


class TestRateLimit:
    def test_general_limit(self, client):
        for _ in range(5):
            assert client.get("/api/components").status_code == 200
        resp = client.get("/api/components")
        assert resp.status_code == 429
        assert resp.json()["detail"].startswith("Rate limit exceeded")
        assert int(resp.headers["Retry-After"]) >= 1

    def test_batch_limit_is_stricter(self, client):
        assert client.post("/api/designs/a/simulate").status_code == 200
        assert client.post("/api/designs/a/simulate").status_code == 200
        resp = client.post("/api/designs/a/simulate")
        assert resp.status_code == 429
        assert resp.json()["detail"].startswith("Batch simulation")
        # Other routes still have general capacity left
        assert client.get("/api/components").status_code == 200

    def test_window_slides(self, client, clock):
        for _ in range(5):
            client.get("/api/components")
        assert client.get("/api/components").status_code == 429
        clock.now += 61
        assert client.get("/api/components").status_code == 200

    def test_clients_are_independent(self, client):
        for _ in range(5):
            client.get("/api/components", headers={"X-Forwarded-For": "10.1.1.1"})
        assert client.get("/api/components", headers={"X-Forwarded-For": "10.1.1.1"}).status_code == 429
        assert client.get("/api/components", headers={"X-Forwarded-For": "10.1.1.2"}).status_code == 200

    def test_health_exempt(self, client):
        for _ in range(10):
            assert client.get("/api/health").status_code == 200
