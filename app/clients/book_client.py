"""
Book Service Client
Confirms that a book exists in the catalog and returns its public attributes.
"""

from typing import Optional

from pydantic import ValidationError

from app.clients.service_client import ServiceClient
from app.core.config import config
from app.core.errors import UpstreamUnavailable
from app.models.loan import BookInfo

KIND = "book"


class BookServiceClient:
    """Client for the book catalog"""

    def __init__(self, service_client: Optional[ServiceClient] = None):
        self.client = service_client or ServiceClient(
            config.book_service_url,
            kind=KIND,
            timeout=config.upstream_timeout_seconds,
            max_retries=config.upstream_max_retries,
            retry_backoff=config.upstream_retry_backoff,
        )

    async def get_book(self, book_id: int) -> BookInfo:
        """Look up a book by id. Same failure shape as the user lookup."""
        data = await self.client.get_entity(f"/books/{book_id}", book_id)
        try:
            return BookInfo(**data)
        except (TypeError, ValidationError) as e:
            raise UpstreamUnavailable(KIND, f"unexpected book document: {e}")


_book_client: Optional[BookServiceClient] = None


def get_book_client() -> BookServiceClient:
    """Get the global book service client, creating it on first use"""
    global _book_client
    if _book_client is None:
        _book_client = BookServiceClient()
    return _book_client
