# Test type: Configuration
# Validation to be executed: Shared fixtures for all test modules
# Command: pytest test/ -v (this file is auto-loaded by pytest)

"""Shared pytest fixtures for the Income-Tax Regime Engine test suite."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import app
from app.models.schemas import ComplianceProfile, IncomeProfile
from app.services.regime_registry import get_regime


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client():
    """Async HTTP client bound to the FastAPI app (no real server needed)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


# ── Regime fixtures ──────────────────────────────────────────────────────

@pytest.fixture
def old_regime():
    return get_regime("old", "2024-25")


@pytest.fixture
def new_regime():
    return get_regime("new", "2024-25")


# ── Sample data fixtures ─────────────────────────────────────────────────

@pytest.fixture
def salaried_12l():
    """Salary of ₹12,00,000 and nothing else."""
    return IncomeProfile(salary=1_200_000)


@pytest.fixture
def heavy_deductions():
    """Old-regime claims totalling ₹4,00,000 after caps."""
    return {"80C": 150_000, "80D": 50_000, "houseProperty": 200_000}


@pytest.fixture
def individual_profile():
    return ComplianceProfile()
