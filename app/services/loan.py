"""
Loan service containing the loan creation pipeline and the listing projection
"""

import asyncio
from typing import AsyncIterator, List, Tuple

from app.clients.book_client import BookServiceClient
from app.clients.user_client import UserServiceClient
from app.core.errors import EntityNotFound, PublishFailed, UpstreamUnavailable
from app.core.logger import logger
from app.events.publisher import LoanEventPublisher
from app.models.loan import (
    UNKNOWN_BOOK,
    UNKNOWN_USER,
    BookInfo,
    Loan,
    LoanCreationResult,
    LoanDetailsView,
    LoanEvent,
    NotificationStatus,
    UserInfo,
)
from app.repositories.loan import LoanRepository

LOOKUP_FAILURES = (EntityNotFound, UpstreamUnavailable)


class LoanService:
    """Service layer for loan business logic"""

    def __init__(
        self,
        repository: LoanRepository,
        user_client: UserServiceClient,
        book_client: BookServiceClient,
        publisher: LoanEventPublisher,
    ):
        self.repository = repository
        self.user_client = user_client
        self.book_client = book_client
        self.publisher = publisher

    async def _validate(self, user_id: int, book_id: int) -> Tuple[UserInfo, BookInfo]:
        """
        Look up the user and the book concurrently. Both lookups run to
        completion; when both fail the user failure is reported.
        """
        user, book = await asyncio.gather(
            self.user_client.get_user(user_id),
            self.book_client.get_book(book_id),
            return_exceptions=True,
        )
        for result in (user, book):
            if isinstance(result, BaseException):
                raise result
        return user, book

    async def create_loan(self, user_id: int, book_id: int) -> LoanCreationResult:
        """
        Validate, store and announce a new loan.

        Validation and store failures propagate and leave no trace: nothing
        is stored and nothing is published. A publish failure after the loan
        is stored does not fail the operation; the result is marked with a
        pending notification instead.

        Raises:
            EntityNotFound: the user or the book does not exist
            UpstreamUnavailable: the user or book service could not answer
            StoreUnavailable: the loan could not be stored
        """
        await self._validate(user_id, book_id)

        loan = await self.repository.save(Loan(user_id=user_id, book_id=book_id))

        logger.info(
            f"Created loan {loan.id}",
            metadata={
                "event": "create_loan",
                "loan_id": loan.id,
                "user_id": user_id,
                "book_id": book_id,
            }
        )

        event = LoanEvent.loan_created(loan)
        try:
            await self.publisher.publish(event)
        except PublishFailed as e:
            logger.warning(
                f"Loan {loan.id} created, notification pending",
                metadata={
                    "event": "loan_notification_pending",
                    "loan_id": loan.id,
                    "topic": e.topic,
                    "reason": e.reason,
                }
            )
            return LoanCreationResult(
                loan=loan,
                notification_status=NotificationStatus.PENDING,
                notification_error=e.reason,
            )

        return LoanCreationResult(loan=loan, notification_status=NotificationStatus.PUBLISHED)

    async def _resolve(self, loan: Loan) -> LoanDetailsView:
        """
        Join a loan with the current user name and book title. An entity that
        cannot be looked up is replaced by a placeholder and the row is
        marked unresolved.
        """
        user, book = await asyncio.gather(
            self.user_client.get_user(loan.user_id),
            self.book_client.get_book(loan.book_id),
            return_exceptions=True,
        )

        resolved = True
        for kind, entity_id, result in (("user", loan.user_id, user), ("book", loan.book_id, book)):
            if isinstance(result, LOOKUP_FAILURES):
                resolved = False
                logger.warning(
                    f"Could not resolve {kind} {entity_id} for loan {loan.id}",
                    metadata={
                        "event": "loan_details_unresolved",
                        "loan_id": loan.id,
                        "kind": kind,
                        "entity_id": entity_id,
                        "reason": result.message,
                    }
                )
            elif isinstance(result, BaseException):
                raise result

        return LoanDetailsView(
            loan_id=loan.id,
            user_name=user.name if isinstance(user, UserInfo) else UNKNOWN_USER,
            book_title=book.title if isinstance(book, BookInfo) else UNKNOWN_BOOK,
            loan_date=loan.loan_date,
            resolved=resolved,
        )

    async def iter_loan_details(self) -> AsyncIterator[LoanDetailsView]:
        """
        Yield one details row per stored loan. Each call re-reads the store
        and re-resolves names, so two calls may disagree.

        Raises:
            StoreUnavailable: the loan store could not be read
        """
        async for loan in self.repository.find_all():
            yield await self._resolve(loan)

    async def list_loans(self) -> List[LoanDetailsView]:
        """All loans with resolved user names and book titles"""
        views = [view async for view in self.iter_loan_details()]
        logger.info(
            f"Listed {len(views)} loans",
            metadata={
                "event": "list_loans",
                "count": len(views),
                "unresolved": sum(1 for v in views if not v.resolved),
            }
        )
        return views
