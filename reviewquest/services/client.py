"""
ServiceClient - Async HTTP transport shared by the request services.

Wraps a lazily created httpx.AsyncClient bound to the backend base URL.
Transport failures are converted to ClassifiedError (FETCH_ERROR) here;
non-2xx responses are returned untouched so each service can attach its own
operation code.
"""

from typing import Any

import httpx
from loguru import logger

from reviewquest.services.errors import ClassifiedError
from reviewquest.settings import global_settings

DEFAULT_HEADERS = {"Content-Type": "application/json"}


class ServiceClient:
    """
    Thin async HTTP client for the review/quest backend.

    Usage:
        async with ServiceClient(base_url="https://app.example.com") as client:
            response = await client.request("GET", "/api/quests/health")

        # Tests swap the network for an in-process transport
        client = ServiceClient(transport=httpx.MockTransport(handler))
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
        cookies: dict[str, str] | None = None,
        session_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        service_id: str = "reviewquest",
    ):
        self.base_url = base_url or global_settings.api_base_url
        self.service_id = service_id
        self._timeout = timeout or global_settings.request_timeout
        self._headers = {**DEFAULT_HEADERS, **(headers or {})}
        self._cookies = dict(cookies or {})
        if session_token:
            # Authentication rides on the backend session cookie
            self._cookies[global_settings.session_cookie_name] = session_token
        self._transport = transport

        # HTTP client (lazy initialization)
        self._http_client: httpx.AsyncClient | None = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
                headers=self._headers,
                cookies=self._cookies,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._http_client

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_data: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        Send a request and return the raw response.

        Args:
            method: HTTP method (GET, POST, ...)
            path: Path relative to the base URL
            params: Query parameters
            json_data: JSON body for POST/PUT/PATCH requests
            headers: Additional headers

        Returns:
            The response, whatever its status

        Raises:
            ClassifiedError: FETCH_ERROR when no response could be obtained
        """
        client = await self._get_http_client()

        try:
            return await client.request(
                method=method,
                url=path,
                params=params,
                json=json_data,
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.debug(f"{method} {path} failed before a response: {e!r}")
            raise ClassifiedError.from_error(e, service_id=self.service_id) from e

    async def close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("ServiceClient closed")

    async def __aenter__(self) -> "ServiceClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()


# Global client instance
_global_client: ServiceClient | None = None


def get_service_client() -> ServiceClient:
    """Get the global service client instance."""
    global _global_client
    if _global_client is None:
        _global_client = ServiceClient()
    return _global_client


async def close_service_client() -> None:
    """Close the global service client."""
    global _global_client
    if _global_client:
        await _global_client.close()
        _global_client = None
