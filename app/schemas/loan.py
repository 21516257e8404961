"""
API schemas for Loan endpoints
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.models.loan import LoanCreationResult, NotificationStatus


class LoanCreate(BaseModel):
    """Schema for creating a new loan"""
    user_id: int = Field(..., alias="userId", description="Borrowing user")
    book_id: int = Field(..., alias="bookId", description="Borrowed book")

    class Config:
        populate_by_name = True


class LoanResponse(BaseModel):
    """Schema for a created loan, including the state of its notification"""
    id: int
    user_id: int = Field(..., alias="userId")
    book_id: int = Field(..., alias="bookId")
    loan_date: datetime = Field(..., alias="loanDate")
    notification_status: NotificationStatus = Field(..., alias="notificationStatus")
    notification_error: Optional[str] = Field(None, alias="notificationError")

    class Config:
        populate_by_name = True

    @classmethod
    def from_result(cls, result: LoanCreationResult) -> "LoanResponse":
        return cls(
            id=result.loan.id,
            user_id=result.loan.user_id,
            book_id=result.loan.book_id,
            loan_date=result.loan.loan_date,
            notification_status=result.notification_status,
            notification_error=result.notification_error,
        )
