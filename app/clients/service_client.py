"""
Service Communication Helper for calls to other microservices
Propagates the correlation ID, bounds every call with a timeout and
maps transport failures onto the service's error types
"""

import asyncio
from typing import Any, Dict, Optional

import httpx

from app.core.errors import EntityNotFound, UpstreamUnavailable
from app.core.logger import logger
from app.middleware.correlation_id import create_headers_with_correlation_id


class ServiceClient:
    """HTTP client for looking up entities owned by another service"""

    def __init__(
        self,
        base_url: str,
        kind: str,
        timeout: float = 5.0,
        max_retries: int = 0,
        retry_backoff: float = 0.2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.kind = kind
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.transport = transport

    async def get_entity(self, endpoint: str, entity_id: Any) -> Dict[str, Any]:
        """
        GET an entity document.

        Raises:
            EntityNotFound: the service answered 404
            UpstreamUnavailable: timeout, connection failure, 5xx or a body
                that is not JSON, after all retries are used up
        """
        attempt = 0
        while True:
            try:
                return await asyncio.wait_for(
                    self._get_once(endpoint, entity_id), timeout=self.timeout
                )
            except asyncio.TimeoutError:
                error = UpstreamUnavailable(self.kind, "timeout")
            except UpstreamUnavailable as e:
                error = e

            if attempt >= self.max_retries:
                logger.error(
                    f"{self.kind.capitalize()} service unavailable",
                    metadata={
                        "event": "upstream_unavailable",
                        "kind": self.kind,
                        "entity_id": entity_id,
                        "attempts": attempt + 1,
                        "reason": error.reason,
                    }
                )
                raise error

            delay = self.retry_backoff * (2 ** attempt)
            attempt += 1
            logger.warning(
                f"Retrying {self.kind} lookup in {delay:.2f}s",
                metadata={
                    "event": "upstream_retry",
                    "kind": self.kind,
                    "entity_id": entity_id,
                    "attempt": attempt,
                    "reason": error.reason,
                }
            )
            await asyncio.sleep(delay)

    async def _get_once(self, endpoint: str, entity_id: Any) -> Dict[str, Any]:
        url = f"{self.base_url}{endpoint}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, headers=create_headers_with_correlation_id())
        except httpx.TimeoutException:
            raise UpstreamUnavailable(self.kind, "timeout")
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(self.kind, f"{type(e).__name__}: {e}")

        if response.status_code == 404:
            logger.debug(
                f"{self.kind.capitalize()} {entity_id} not found",
                metadata={"event": "entity_not_found", "kind": self.kind, "entity_id": entity_id}
            )
            raise EntityNotFound(self.kind, entity_id)

        if response.status_code >= 400:
            raise UpstreamUnavailable(self.kind, f"HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError:
            raise UpstreamUnavailable(self.kind, "response body is not JSON")
