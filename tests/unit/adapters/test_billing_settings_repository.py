"""Unit tests for SqlAlchemyBillingSettingsRepository statements"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.dialects import postgresql

from src.adapter.repositories.billing_settings_repository import SqlAlchemyBillingSettingsRepository
from src.domain.billing_settings import BillingSettings


def mock_session(row=None):
    session = MagicMock()
    result = MagicMock()
    result.scalar_one_or_none.return_value = row
    session.execute = AsyncMock(return_value=result)
    return session


def compiled(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


@pytest.mark.asyncio
class TestSettingsRowLocking:
    async def test_get_does_not_lock_by_default(self):
        session = mock_session(BillingSettings())

        await SqlAlchemyBillingSettingsRepository(session).get()

        stmt = session.execute.call_args.args[0]
        assert "FOR UPDATE" not in compiled(stmt)

    async def test_get_or_create_locks_existing_row(self):
        """
        Given: The settings row exists
        When: get_or_create is called with for_update=True
        Then: The row is selected with FOR UPDATE
        """
        # Arrange
        settings = BillingSettings(invoice_counter=7)
        session = mock_session(settings)

        # Act
        result = await SqlAlchemyBillingSettingsRepository(session).get_or_create(for_update=True)

        # Assert
        assert result is settings
        stmt = session.execute.call_args.args[0]
        assert "FOR UPDATE" in compiled(stmt)
