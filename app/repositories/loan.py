"""
Loan repository: durable loan records keyed by a store-assigned integer id
"""

import asyncio
from typing import AsyncIterator

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from app.core.config import config
from app.core.errors import StoreUnavailable
from app.core.logger import logger
from app.models.loan import Loan

LOAN_SEQUENCE = "loans"


class LoanRepository:
    """Repository for loan data access operations"""

    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        counters: AsyncIOMotorCollection,
        timeout: float = None,
    ):
        self.collection = collection
        self.counters = counters
        self.timeout = timeout if timeout is not None else config.store_timeout_seconds

    def _doc_to_loan(self, doc: dict) -> Loan:
        """Convert MongoDB document to a Loan"""
        return Loan(
            id=doc["_id"],
            user_id=doc["user_id"],
            book_id=doc["book_id"],
            loan_date=doc["loan_date"],
        )

    async def _next_id(self) -> int:
        """Atomically take the next loan id from the counters collection"""
        counter = await self.counters.find_one_and_update(
            {"_id": LOAN_SEQUENCE},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return counter["seq"]

    async def _insert(self, loan: Loan) -> Loan:
        loan_id = await self._next_id()
        doc = {
            "_id": loan_id,
            "user_id": loan.user_id,
            "book_id": loan.book_id,
            "loan_date": loan.loan_date,
        }
        await self.collection.insert_one(doc)
        return self._doc_to_loan(doc)

    async def save(self, loan: Loan) -> Loan:
        """
        Insert a new loan and return it with its assigned id.

        Raises:
            StoreUnavailable: MongoDB failed or did not answer in time
        """
        try:
            saved = await asyncio.wait_for(self._insert(loan), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error("Timed out saving loan", metadata={"event": "loan_save_timeout"})
            raise StoreUnavailable("timeout")
        except PyMongoError as e:
            logger.error(f"MongoDB error saving loan: {e}", metadata={"event": "loan_save_error"})
            raise StoreUnavailable(str(e))

        logger.debug(
            f"Stored loan {saved.id}",
            metadata={"event": "loan_saved", "loan_id": saved.id}
        )
        return saved

    async def find_all(self) -> AsyncIterator[Loan]:
        """
        Yield every stored loan in id order.

        Raises:
            StoreUnavailable: MongoDB failed or a batch did not arrive in time
        """
        cursor = self.collection.find({}).sort("_id", 1)
        try:
            while True:
                try:
                    doc = await asyncio.wait_for(cursor.__anext__(), timeout=self.timeout)
                except StopAsyncIteration:
                    break
                yield self._doc_to_loan(doc)
        except asyncio.TimeoutError:
            logger.error("Timed out reading loans", metadata={"event": "loan_scan_timeout"})
            raise StoreUnavailable("timeout")
        except PyMongoError as e:
            logger.error(f"MongoDB error reading loans: {e}", metadata={"event": "loan_scan_error"})
            raise StoreUnavailable(str(e))
