"""Unit tests for LoanCreatedHandler and the handler registry"""
import pytest
from unittest.mock import AsyncMock

from app.consumer.handlers import LoanCreatedHandler, build_handlers, get_handler


class TestLoanCreatedHandler:
    """Test cases for LoanCreatedHandler"""

    @pytest.fixture
    def mock_notifier(self):
        return AsyncMock()

    @pytest.fixture
    def mock_processed_events(self):
        processed_events = AsyncMock()
        processed_events.claim.return_value = True
        return processed_events

    @pytest.fixture
    def handler(self, mock_notifier, mock_processed_events):
        return LoanCreatedHandler(mock_notifier, mock_processed_events)

    @pytest.mark.asyncio
    async def test_first_delivery_notifies(self, handler, mock_notifier, mock_processed_events, loan_event):
        # Act
        handled = await handler(loan_event)

        # Assert
        assert handled is True
        mock_processed_events.claim.assert_awaited_once()
        assert mock_processed_events.claim.call_args[0][:2] == ("LOAN_CREATED:101", "LOAN_CREATED")
        mock_notifier.notify_loan_created.assert_awaited_once_with(101, 42, 7)

    @pytest.mark.asyncio
    async def test_duplicate_delivery_skips_notification(
        self, handler, mock_notifier, mock_processed_events, loan_event
    ):
        mock_processed_events.claim.return_value = False

        handled = await handler(loan_event)

        assert handled is False
        mock_notifier.notify_loan_created.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_notifier_failure_releases_claim(
        self, handler, mock_notifier, mock_processed_events, loan_event
    ):
        mock_notifier.notify_loan_created.side_effect = RuntimeError("smtp down")

        with pytest.raises(RuntimeError):
            await handler(loan_event)

        mock_processed_events.release.assert_awaited_once_with("LOAN_CREATED:101")


class TestHandlerRegistry:

    def test_current_and_legacy_types_share_handler(self):
        handlers = build_handlers(AsyncMock(), AsyncMock())

        assert isinstance(handlers["LOAN_CREATED"], LoanCreatedHandler)
        assert handlers["EMPRUNT_CREATED"] is handlers["LOAN_CREATED"]

    def test_get_handler_unknown_type(self):
        handlers = build_handlers(AsyncMock(), AsyncMock())

        assert get_handler(handlers, "LOAN_RETURNED") is None
        assert get_handler(handlers, None) is None
        assert get_handler(handlers, ["LOAN_CREATED"]) is None
