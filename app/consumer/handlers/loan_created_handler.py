"""
Loan Created Handler
Notifies the borrower once per loan, however often the event is delivered
"""

from app.core.logger import logger
from app.models.loan import LoanEvent
from app.repositories.processed_events import ProcessedEventRepository
from app.services.notification import Notifier


class LoanCreatedHandler:
    """
    Handle LOAN_CREATED events.

    The event is claimed in the processed-events store before the notifier
    runs, so a redelivered event is skipped. If the notifier fails the
    claim is released and the error propagates. The consumer logs the
    failure and moves on; only a replay of the topic (an offset reset or a
    redelivery after an uncommitted offset) notifies again.
    """

    def __init__(self, notifier: Notifier, processed_events: ProcessedEventRepository):
        self.notifier = notifier
        self.processed_events = processed_events

    async def __call__(self, event: LoanEvent) -> bool:
        """
        Returns:
            True if a notification was triggered, False for a duplicate
        """
        claimed = await self.processed_events.claim(
            event.event_id,
            event.event_type.value,
            metadata={"loanId": event.loan_id, "userId": event.user_id, "bookId": event.book_id},
        )
        if not claimed:
            logger.info(
                f"Skipping duplicate event for loan {event.loan_id}",
                metadata={"event": "duplicate_loan_event", "loan_id": event.loan_id}
            )
            return False

        logger.info(
            f"Processing notification for loan {event.loan_id}",
            metadata={
                "event": "loan_notification",
                "loan_id": event.loan_id,
                "user_id": event.user_id,
                "book_id": event.book_id,
            }
        )

        try:
            await self.notifier.notify_loan_created(event.loan_id, event.user_id, event.book_id)
        except Exception:
            await self.processed_events.release(event.event_id)
            raise

        return True
