from typing import Any

import httpx

from digitalme.core.retry import RetryPolicy


class BaseClient:
    """
    Base asynchronous HTTP client with a pluggable retry policy and logging.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.headers = headers or {}
        # One attempt per request unless the subclass supplies a policy
        self.retry_policy = retry_policy or RetryPolicy(max_attempts=1)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx.AsyncClient instance."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Internal request handler; non-2xx responses raise ``httpx.HTTPStatusError``."""
        client = await self.get_client()

        async def attempt() -> httpx.Response:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
            return response

        return await self.retry_policy.run(attempt, description=f"{method} {url}")

    async def get(self, url: str, params: dict[str, Any] | None = None, **kwargs) -> dict[str, Any]:
        """Perform a GET request and return the JSON response."""
        response = await self._request("GET", url, params=params, **kwargs)
        return response.json()

    async def post(self, url: str, json: dict[str, Any] | None = None, **kwargs) -> dict[str, Any]:
        """Perform a POST request and return the JSON response."""
        response = await self._request("POST", url, json=json, **kwargs)
        return response.json()
