"""
Clients Package
External service clients for the user directory and the book catalog.
"""

from .service_client import ServiceClient
from .user_client import UserServiceClient, get_user_client
from .book_client import BookServiceClient, get_book_client

__all__ = [
    "ServiceClient",
    "UserServiceClient",
    "get_user_client",
    "BookServiceClient",
    "get_book_client",
]
