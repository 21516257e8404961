"""Shared test fixtures"""
import pytest
from unittest.mock import AsyncMock, MagicMock
from datetime import datetime, timezone

from app.models.loan import BookInfo, Loan, LoanEvent, UserInfo


@pytest.fixture
def mock_collection():
    """Mock MongoDB collection for testing"""
    collection = AsyncMock()
    collection.find = MagicMock()
    return collection


@pytest.fixture
def loan_date():
    """Fixed loan timestamp"""
    return datetime(2024, 3, 1, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def sample_user():
    """User returned by the user directory"""
    return UserInfo(id=42, name="Alice")


@pytest.fixture
def sample_book():
    """Book returned by the book catalog"""
    return BookInfo(id=7, title="Dune")


@pytest.fixture
def stored_loan(loan_date):
    """Loan as returned by the store after insert"""
    return Loan(id=101, user_id=42, book_id=7, loan_date=loan_date)


@pytest.fixture
def loan_event(stored_loan):
    """LOAN_CREATED event for the stored loan"""
    return LoanEvent.loan_created(stored_loan)


@pytest.fixture
def loan_doc(loan_date):
    """Loan document as stored in MongoDB"""
    return {"_id": 101, "user_id": 42, "book_id": 7, "loan_date": loan_date}
