"""
Loan domain models: the stored loan, its listing projection and
the loan-created event
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

UNKNOWN_USER = "Unknown user"
UNKNOWN_BOOK = "Unknown book"


def utc_now():
    """Helper function for Pydantic default_factory to get current UTC time"""
    return datetime.now(timezone.utc)


class LoanEventType(str, Enum):
    """Kinds of loan events carried on the event channel"""
    LOAN_CREATED = "LOAN_CREATED"


# Event type names written by older producers
LEGACY_EVENT_TYPES = {"EMPRUNT_CREATED": LoanEventType.LOAN_CREATED}


class NotificationStatus(str, Enum):
    """Whether the loan-created event reached the event channel"""
    PUBLISHED = "published"
    PENDING = "pending"


class Loan(BaseModel):
    """A borrower taking a book. Immutable once stored."""
    id: Optional[int] = Field(None, description="Assigned by the loan store on creation")
    user_id: int = Field(..., alias="userId")
    book_id: int = Field(..., alias="bookId")
    loan_date: datetime = Field(default_factory=utc_now, alias="loanDate")

    class Config:
        populate_by_name = True
        frozen = True


class UserInfo(BaseModel):
    """Minimal public attributes of a user from the user directory"""
    id: int
    name: str

    class Config:
        extra = "ignore"


class BookInfo(BaseModel):
    """Minimal public attributes of a book from the book catalog"""
    id: int
    title: str

    class Config:
        extra = "ignore"


class LoanDetailsView(BaseModel):
    """
    Denormalized listing row. Built on demand from live user/book lookups,
    never stored. ``resolved`` is False when a placeholder name or title
    stands in for an entity that could not be looked up.
    """
    loan_id: int = Field(..., alias="loanId")
    user_name: str = Field(..., alias="userName")
    book_title: str = Field(..., alias="bookTitle")
    loan_date: datetime = Field(..., alias="loanDate")
    resolved: bool = True

    class Config:
        populate_by_name = True


class LoanEvent(BaseModel):
    """
    Fact that a loan was stored. Published once, possibly delivered
    more than once. ``empruntId`` is accepted as an alias of ``loanId``
    for payloads from older producers.
    """
    loan_id: int = Field(
        ...,
        validation_alias=AliasChoices("loanId", "empruntId", "loan_id"),
        serialization_alias="loanId",
    )
    user_id: int = Field(..., alias="userId")
    book_id: int = Field(..., alias="bookId")
    event_type: LoanEventType = Field(..., alias="eventType")
    timestamp: datetime = Field(default_factory=utc_now)

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("event_type", mode="before")
    @classmethod
    def _legacy_event_type(cls, value):
        if isinstance(value, str):
            return LEGACY_EVENT_TYPES.get(value, value)
        return value

    @classmethod
    def loan_created(cls, loan: Loan) -> "LoanEvent":
        """Build the LOAN_CREATED event for a stored loan"""
        if loan.id is None:
            raise ValueError("Cannot build an event for a loan without an id")
        return cls(
            loan_id=loan.id,
            user_id=loan.user_id,
            book_id=loan.book_id,
            event_type=LoanEventType.LOAN_CREATED,
            timestamp=utc_now(),
        )

    @property
    def event_id(self) -> str:
        """Stable identity used to recognise redelivered events"""
        return f"{self.event_type.value}:{self.loan_id}"

    def to_payload(self, legacy_field_names: bool = False) -> dict:
        """JSON-ready message body"""
        payload = self.model_dump(mode="json", by_alias=True)
        if legacy_field_names:
            payload = {"empruntId": payload.pop("loanId"), **payload}
        return payload


class PublishOutcome(BaseModel):
    """Channel acknowledgement for a published event"""
    topic: str
    partition: Optional[int] = None
    offset: Optional[int] = None


class LoanCreationResult(BaseModel):
    """Stored loan plus the state of its notification event"""
    loan: Loan
    notification_status: NotificationStatus
    notification_error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.notification_status is NotificationStatus.PENDING
