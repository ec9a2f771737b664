# Test type: Unit Test
# Validation to be executed: Validates that audit persistence degrades to a
#   no-op when PostgreSQL has not been initialised.
# Command: pytest test/test_unit_database.py -v

"""Unit tests for app.database module (no database required)."""

import pytest

from app.database import get_session, is_db_available, record_calculation

pytestmark = pytest.mark.anyio


async def test_session_is_none_without_database():
    assert is_db_available() is False
    async with get_session() as session:
        assert session is None


async def test_record_calculation_is_a_no_op():
    result = await record_calculation(
        endpoint="/tax:calculate",
        assessment_year="2024-25",
        gross_income=1_200_000,
        regime="new",
        net_tax_liability=81_900,
        summary={"taxableIncome": 1_125_000},
    )
    assert result is None
