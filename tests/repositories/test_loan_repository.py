"""Unit tests for LoanRepository"""
import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError, ServerSelectionTimeoutError

from app.core.errors import StoreUnavailable
from app.models.loan import Loan
from app.repositories.loan import LoanRepository


class FakeCursor:
    """Async cursor over a list of documents"""

    def __init__(self, docs, error=None):
        self.docs = list(docs)
        self.error = error
        self.sort_args = None

    def sort(self, *args):
        self.sort_args = args
        return self

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self.error and not self.docs:
            raise self.error
        if not self.docs:
            raise StopAsyncIteration
        return self.docs.pop(0)


class TestLoanRepository:
    """Test cases for LoanRepository"""

    @pytest.fixture
    def mock_counters(self):
        counters = AsyncMock()
        counters.find_one_and_update.return_value = {"_id": "loans", "seq": 101}
        return counters

    @pytest.fixture
    def repository(self, mock_collection, mock_counters):
        return LoanRepository(mock_collection, mock_counters, timeout=1.0)


class TestSave(TestLoanRepository):

    @pytest.mark.asyncio
    async def test_save_assigns_sequence_id(self, repository, mock_collection, mock_counters, loan_date):
        # Arrange
        loan = Loan(user_id=42, book_id=7, loan_date=loan_date)

        # Act
        saved = await repository.save(loan)

        # Assert
        assert saved.id == 101
        assert saved.user_id == 42
        assert saved.book_id == 7
        assert saved.loan_date == loan_date
        mock_collection.insert_one.assert_awaited_once_with(
            {"_id": 101, "user_id": 42, "book_id": 7, "loan_date": loan_date}
        )

    @pytest.mark.asyncio
    async def test_save_increments_counter_atomically(self, repository, mock_counters):
        await repository.save(Loan(user_id=1, book_id=2))

        args, kwargs = mock_counters.find_one_and_update.call_args
        assert args == ({"_id": "loans"}, {"$inc": {"seq": 1}})
        assert kwargs == {"upsert": True, "return_document": ReturnDocument.AFTER}

    @pytest.mark.asyncio
    async def test_save_mongo_error_is_store_unavailable(self, repository, mock_collection):
        mock_collection.insert_one.side_effect = PyMongoError("write failed")

        with pytest.raises(StoreUnavailable) as exc_info:
            await repository.save(Loan(user_id=1, book_id=2))

        assert "write failed" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_save_counter_error_is_store_unavailable(self, repository, mock_counters, mock_collection):
        mock_counters.find_one_and_update.side_effect = ServerSelectionTimeoutError("no servers")

        with pytest.raises(StoreUnavailable):
            await repository.save(Loan(user_id=1, book_id=2))

        mock_collection.insert_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_save_timeout_is_store_unavailable(self, mock_collection, mock_counters):
        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        mock_collection.insert_one.side_effect = hang
        repository = LoanRepository(mock_collection, mock_counters, timeout=0.01)

        with pytest.raises(StoreUnavailable) as exc_info:
            await repository.save(Loan(user_id=1, book_id=2))

        assert exc_info.value.reason == "timeout"


class TestFindAll(TestLoanRepository):

    @pytest.mark.asyncio
    async def test_find_all_yields_loans_in_id_order(self, repository, mock_collection, loan_doc, loan_date):
        cursor = FakeCursor([loan_doc, {"_id": 102, "user_id": 43, "book_id": 8, "loan_date": loan_date}])
        mock_collection.find.return_value = cursor

        loans = [loan async for loan in repository.find_all()]

        assert [loan.id for loan in loans] == [101, 102]
        assert loans[1].user_id == 43
        assert cursor.sort_args == ("_id", 1)

    @pytest.mark.asyncio
    async def test_find_all_empty(self, repository, mock_collection):
        mock_collection.find.return_value = FakeCursor([])

        loans = [loan async for loan in repository.find_all()]

        assert loans == []

    @pytest.mark.asyncio
    async def test_find_all_mongo_error_is_store_unavailable(self, repository, mock_collection):
        mock_collection.find.return_value = FakeCursor([], error=PyMongoError("cursor died"))

        with pytest.raises(StoreUnavailable):
            [loan async for loan in repository.find_all()]
