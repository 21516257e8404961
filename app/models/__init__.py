"""
Models module initialization
"""

from .loan import (
    BookInfo,
    Loan,
    LoanCreationResult,
    LoanDetailsView,
    LoanEvent,
    LoanEventType,
    NotificationStatus,
    PublishOutcome,
    UserInfo,
)

__all__ = [
    "BookInfo",
    "Loan",
    "LoanCreationResult",
    "LoanDetailsView",
    "LoanEvent",
    "LoanEventType",
    "NotificationStatus",
    "PublishOutcome",
    "UserInfo",
]
