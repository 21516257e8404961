"""
User Service Client
Confirms that a user exists in the user directory and returns its public attributes.
"""

from typing import Optional

from pydantic import ValidationError

from app.clients.service_client import ServiceClient
from app.core.config import config
from app.core.errors import UpstreamUnavailable
from app.models.loan import UserInfo

KIND = "user"


class UserServiceClient:
    """Client for the user directory"""

    def __init__(self, service_client: Optional[ServiceClient] = None):
        self.client = service_client or ServiceClient(
            config.user_service_url,
            kind=KIND,
            timeout=config.upstream_timeout_seconds,
            max_retries=config.upstream_max_retries,
            retry_backoff=config.upstream_retry_backoff,
        )

    async def get_user(self, user_id: int) -> UserInfo:
        """
        Look up a user by id.

        Raises:
            EntityNotFound: the user does not exist
            UpstreamUnavailable: the user service could not answer
        """
        data = await self.client.get_entity(f"/users/{user_id}", user_id)
        try:
            return UserInfo(**data)
        except (TypeError, ValidationError) as e:
            raise UpstreamUnavailable(KIND, f"unexpected user document: {e}")


# Global client instance
_user_client: Optional[UserServiceClient] = None


def get_user_client() -> UserServiceClient:
    """Get the global user service client, creating it on first use"""
    global _user_client
    if _user_client is None:
        _user_client = UserServiceClient()
    return _user_client
