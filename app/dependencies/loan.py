"""
Dependency injection for the Loan service and its collaborators
"""

from fastapi import Depends

from app.clients.book_client import BookServiceClient, get_book_client
from app.clients.user_client import UserServiceClient, get_user_client
from app.db.mongodb import get_counter_collection, get_loan_collection
from app.events.publisher import LoanEventPublisher, get_event_publisher
from app.repositories.loan import LoanRepository
from app.services.loan import LoanService


async def get_loan_repository() -> LoanRepository:
    """Get loan repository instance"""
    return LoanRepository(await get_loan_collection(), await get_counter_collection())


async def get_loan_service(
    repository: LoanRepository = Depends(get_loan_repository),
    user_client: UserServiceClient = Depends(get_user_client),
    book_client: BookServiceClient = Depends(get_book_client),
    publisher: LoanEventPublisher = Depends(get_event_publisher),
) -> LoanService:
    """Get loan service instance"""
    return LoanService(repository, user_client, book_client, publisher)
