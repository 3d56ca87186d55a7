"""Pytest fixtures for integration tests.

This module provides shared fixtures for integration testing the tally API.
Each client fixture runs the application's lifespan, so every test starts
with a fresh, empty session registry.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, List

import httpx
import pytest

from services.shared import generate_nullifier
from services.tally_api.config import settings
from services.tally_api.main import app


@asynccontextmanager
async def open_api_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Run the app lifespan and yield an httpx client bound to it."""
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(
            transport=transport,
            base_url="http://testserver",
            timeout=10.0
        ) as client:
            yield client


@pytest.fixture
async def api_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client for the tally API with session overwrite allowed (default)."""
    async with open_api_client() as client:
        yield client


@pytest.fixture
async def strict_api_client(monkeypatch) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client for a tally API that refuses to re-create sessions."""
    monkeypatch.setattr(settings, "ALLOW_SESSION_OVERWRITE", False)
    async with open_api_client() as client:
        yield client


@pytest.fixture
def api_prefix() -> str:
    """Versioned route prefix."""
    return settings.api_prefix


@pytest.fixture
def create_session(api_client: httpx.AsyncClient, api_prefix: str):
    """Helper fixture to create a session through the API.

    Returns an async function that creates the session and asserts success.
    """
    async def _create(proposal_id: str) -> Dict:
        response = await api_client.post(
            f"{api_prefix}/session/create",
            json={"proposalId": proposal_id}
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _create


@pytest.fixture
def submit_vote(api_client: httpx.AsyncClient, api_prefix: str):
    """Helper fixture to submit a ballot.

    Returns an async function yielding the raw httpx response.
    """
    async def _submit(proposal_id: str, nullifier: str, vote=1, proof: str = "proof") -> httpx.Response:
        return await api_client.post(
            f"{api_prefix}/vote/submit",
            json={
                "proposalId": proposal_id,
                "vote": {"nullifier": nullifier, "vote": vote, "proof": proof}
            }
        )

    return _submit


@pytest.fixture
def get_results(api_client: httpx.AsyncClient, api_prefix: str):
    """Helper fixture to read results for a proposal."""
    async def _get(proposal_id: str) -> httpx.Response:
        return await api_client.get(
            f"{api_prefix}/results",
            params={"proposalId": proposal_id}
        )

    return _get


@pytest.fixture
def nullifier_for():
    """Helper fixture to derive nullifiers the same way the service does."""
    return generate_nullifier


@pytest.fixture
def sample_ballots(nullifier_for) -> List[Dict]:
    """Sample ballots from five distinct voters (3 yes, 2 no)."""
    return [
        {"nullifier": nullifier_for("alice"), "vote": 1, "proof": "p-alice"},
        {"nullifier": nullifier_for("bob"), "vote": 0, "proof": "p-bob"},
        {"nullifier": nullifier_for("carol"), "vote": 1, "proof": "p-carol"},
        {"nullifier": nullifier_for("dave"), "vote": "yes", "proof": ""},
        {"nullifier": nullifier_for("erin"), "vote": "no", "proof": ""},
    ]


@pytest.fixture
def invalid_vote_bodies() -> List[Dict]:
    """Malformed vote submissions for negative testing."""
    return [
        # Missing proposalId
        {"vote": {"nullifier": "n1", "vote": 1, "proof": ""}},
        # Missing vote object
        {"proposalId": "P1"},
        # Invalid vote value
        {"proposalId": "P1", "vote": {"nullifier": "n1", "vote": "maybe", "proof": ""}},
        # Out of range vote value
        {"proposalId": "P1", "vote": {"nullifier": "n1", "vote": 2, "proof": ""}},
        # Float vote value
        {"proposalId": "P1", "vote": {"nullifier": "n1", "vote": 1.0, "proof": ""}},
        # Empty nullifier
        {"proposalId": "P1", "vote": {"nullifier": "", "vote": 1, "proof": ""}},
        # Empty proposalId
        {"proposalId": "   ", "vote": {"nullifier": "n1", "vote": 1, "proof": ""}},
    ]
