"""HTTP transport implementation using httpx."""

import asyncio
from typing import Mapping

import httpx

from ..errors import FetchFailure
from .protocols import Hop, TransportResponse


class HttpxTransport:
    """Async HTTP transport using httpx with connection reuse.

    Redirects are followed by httpx; the intermediate responses are reported
    as hops. Bodies are returned undecoded so content-encoding stays visible
    to the caller.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        max_connections: int = 100,
        max_keepalive_connections: int = 20,
        max_redirects: int = 20,
        client: httpx.AsyncClient | None = None,
    ):
        self.timeout = httpx.Timeout(timeout)
        self.limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        )
        self.max_redirects = max_redirects
        self._client = client
        self._owns_client = client is None
        self._lock = asyncio.Lock()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with double-checked locking."""
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    self._client = httpx.AsyncClient(
                        timeout=self.timeout,
                        limits=self.limits,
                        follow_redirects=True,
                        max_redirects=self.max_redirects,
                    )
                    self._owns_client = True
        return self._client

    async def request(
        self, method: str, uri: str, headers: Mapping[str, str]
    ) -> TransportResponse:
        """Perform a request, following redirects, and return the terminal response."""
        client = await self._get_client()
        try:
            req = client.build_request(method, uri, headers=dict(headers))
            # Only advertise compression when the caller asks for it.
            if not any(name.lower() == "accept-encoding" for name in headers):
                req.headers.pop("Accept-Encoding", None)
            resp = await client.send(req, stream=True, follow_redirects=True)
            try:
                body = b"".join([chunk async for chunk in resp.aiter_raw()])
            finally:
                await resp.aclose()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchFailure(str(e) or type(e).__name__, uri=uri) from e

        return TransportResponse(
            url=str(resp.url),
            status=resp.status_code,
            reason=resp.reason_phrase,
            headers=resp.headers,
            body=body,
            history=[
                Hop(url=str(prev.url), status=prev.status_code, headers=prev.headers)
                for prev in resp.history
            ],
            raw=resp,
        )

    async def close(self):
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
