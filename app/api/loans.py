"""
Loan API endpoints
"""

from typing import List

from fastapi import APIRouter, Depends, status

from app.core.errors import ErrorResponseModel
from app.dependencies.loan import get_loan_service
from app.models.loan import LoanDetailsView
from app.schemas.loan import LoanCreate, LoanResponse
from app.services.loan import LoanService

router = APIRouter()

ERROR_RESPONSES = {
    404: {"model": ErrorResponseModel, "description": "User or book not found"},
    503: {"model": ErrorResponseModel, "description": "User service, book service or store unavailable"},
}


@router.post(
    "",
    response_model=LoanResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_loan(
    loan_data: LoanCreate,
    service: LoanService = Depends(get_loan_service),
):
    """
    Create a loan for an existing user and book.

    A loan whose event could not be published is still created;
    `notificationStatus` is then `pending` instead of `published`.
    """
    result = await service.create_loan(loan_data.user_id, loan_data.book_id)
    return LoanResponse.from_result(result)


@router.post(
    "/{user_id}/{book_id}",
    response_model=LoanResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_loan_from_path(
    user_id: int,
    book_id: int,
    service: LoanService = Depends(get_loan_service),
):
    """Create a loan, with user and book given in the path"""
    result = await service.create_loan(user_id, book_id)
    return LoanResponse.from_result(result)


@router.get(
    "",
    response_model=List[LoanDetailsView],
    responses={503: {"model": ErrorResponseModel}},
)
async def list_loans(service: LoanService = Depends(get_loan_service)):
    """
    List all loans with the current user name and book title.
    Rows whose user or book could not be looked up carry a placeholder
    and `resolved: false`.
    """
    return await service.list_loans()
