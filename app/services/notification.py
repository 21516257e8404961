"""
Notification collaborator used by the loan event consumer
"""

from abc import ABC, abstractmethod

from app.core.logger import logger


class Notifier(ABC):
    """Delivers a loan notification to a borrower. The medium is up to the implementation."""

    @abstractmethod
    async def notify_loan_created(self, loan_id: int, user_id: int, book_id: int) -> None:
        pass


class LoggingNotifier(Notifier):
    """Notifier that records the notification in the service log"""

    async def notify_loan_created(self, loan_id: int, user_id: int, book_id: int) -> None:
        logger.info(
            f"Notification sent to user {user_id} for book {book_id}",
            metadata={
                "event": "notification_sent",
                "loan_id": loan_id,
                "user_id": user_id,
                "book_id": book_id,
            }
        )
