"""Tests for HttpxTransport."""

import gzip

import httpx
import pytest

from urifetch.core import GzipDecompressor, HttpxTransport, TransportResponse
from urifetch.errors import FetchFailure


@pytest.fixture
async def transport():
    transport = HttpxTransport(timeout=10.0)
    yield transport
    await transport.close()


class TestHttpxTransport:
    async def test_returns_terminal_response(self, transport, httpx_mock):
        """Status, headers and body of the response are reported."""
        httpx_mock.add_response(
            url="http://example.com/feed",
            status_code=200,
            content=b"<feed/>",
            headers={"ETag": "abc"},
        )

        res = await transport.request("GET", "http://example.com/feed", {})

        assert isinstance(res, TransportResponse)
        assert res.status == 200
        assert res.reason == "OK"
        assert res.body == b"<feed/>"
        assert res.headers.get("etag") == "abc"
        assert res.history == []
        assert res.previous is None
        assert res.is_success

    async def test_sends_given_headers(self, transport, httpx_mock):
        """Request headers are passed through."""
        httpx_mock.add_response(url="http://example.com/feed", status_code=304)

        await transport.request("GET", "http://example.com/feed", {"If-None-Match": "abc"})

        request = httpx_mock.get_request()
        assert request.headers["If-None-Match"] == "abc"

    async def test_does_not_advertise_compression_by_default(self, transport, httpx_mock):
        """The client's default Accept-Encoding is dropped."""
        httpx_mock.add_response(url="http://example.com/feed")

        await transport.request("GET", "http://example.com/feed", {})

        request = httpx_mock.get_request()
        assert "accept-encoding" not in request.headers

    async def test_body_is_not_decoded(self, transport, httpx_mock):
        """Content-encoded bodies are returned raw."""
        compressed = gzip.compress(b"hello")
        httpx_mock.add_response(
            url="http://example.com/feed",
            content=compressed,
            headers={"Content-Encoding": "gzip"},
        )

        res = await transport.request("GET", "http://example.com/feed", {"Accept-Encoding": "gzip"})

        assert res.body == compressed
        assert GzipDecompressor().decompress(res.body) == b"hello"

    async def test_follows_redirects_and_keeps_history(self, transport, httpx_mock):
        """Every redirect hop is recorded in order."""
        httpx_mock.add_response(
            url="http://example.com/a",
            status_code=301,
            headers={"Location": "http://example.com/b"},
        )
        httpx_mock.add_response(
            url="http://example.com/b",
            status_code=302,
            headers={"Location": "http://example.com/c"},
        )
        httpx_mock.add_response(url="http://example.com/c", content=b"done")

        res = await transport.request("GET", "http://example.com/a", {})

        assert res.url == "http://example.com/c"
        assert res.status == 200
        assert [hop.status for hop in res.history] == [301, 302]
        assert res.history[0].url == "http://example.com/a"
        assert res.previous.headers["location"] == "http://example.com/c"

    async def test_error_status_is_returned(self, transport, httpx_mock):
        """HTTP error statuses are not raised by the transport."""
        httpx_mock.add_response(url="http://example.com/feed", status_code=503)

        res = await transport.request("GET", "http://example.com/feed", {})

        assert res.status == 503
        assert res.reason == "Service Unavailable"
        assert not res.is_success

    async def test_network_error_raises_fetch_failure(self, transport, httpx_mock):
        """httpx errors are wrapped in FetchFailure."""
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"), url="http://example.com/feed")

        with pytest.raises(FetchFailure, match="timed out") as exc_info:
            await transport.request("GET", "http://example.com/feed", {})

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)

    async def test_invalid_url_raises_fetch_failure(self, transport):
        """Malformed URLs are wrapped in FetchFailure."""
        with pytest.raises(FetchFailure) as exc_info:
            await transport.request("GET", "http://exa mple.com/\x00feed", {})

        assert isinstance(exc_info.value.__cause__, httpx.InvalidURL)

    async def test_caller_accept_encoding_is_sent(self, transport, httpx_mock):
        """An explicit Accept-Encoding from the caller is kept."""
        httpx_mock.add_response(url="http://example.com/feed")

        await transport.request("GET", "http://example.com/feed", {"Accept-Encoding": "gzip"})

        assert httpx_mock.get_request().headers["Accept-Encoding"] == "gzip"

    async def test_close_releases_recreated_client(self, transport, httpx_mock):
        """A client created after close() is closed by the next close()."""
        httpx_mock.add_response(url="http://example.com/a")
        httpx_mock.add_response(url="http://example.com/b")

        await transport.request("GET", "http://example.com/a", {})
        await transport.close()
        await transport.request("GET", "http://example.com/b", {})
        client = transport._client
        await transport.close()

        assert client.is_closed


class TestHttpxTransportInjectedClient:
    @pytest.fixture
    async def client(self):
        client = httpx.AsyncClient()
        yield client
        await client.aclose()

    async def test_strips_default_accept_encoding(self, client, httpx_mock):
        """The injected client's default Accept-Encoding is not sent."""
        httpx_mock.add_response(url="http://example.com/feed")
        transport = HttpxTransport(client=client)

        await transport.request("GET", "http://example.com/feed", {})

        assert "accept-encoding" not in httpx_mock.get_request().headers

    async def test_follows_redirects(self, client, httpx_mock):
        """Redirects are followed even if the client does not by default."""
        httpx_mock.add_response(
            url="http://example.com/a",
            status_code=301,
            headers={"Location": "http://example.com/b"},
        )
        httpx_mock.add_response(url="http://example.com/b", content=b"done")
        transport = HttpxTransport(client=client)

        res = await transport.request("GET", "http://example.com/a", {})

        assert res.status == 200
        assert [hop.status for hop in res.history] == [301]

    async def test_close_leaves_injected_client_open(self, client, httpx_mock):
        """close() does not close a client the transport did not create."""
        httpx_mock.add_response(url="http://example.com/feed")
        transport = HttpxTransport(client=client)

        await transport.request("GET", "http://example.com/feed", {})
        await transport.close()

        assert not client.is_closed

    async def test_client_created_after_close_is_owned(self, client, httpx_mock):
        """After close(), the transport builds and later closes its own client."""
        httpx_mock.add_response(url="http://example.com/feed")
        transport = HttpxTransport(client=client)
        await transport.close()

        await transport.request("GET", "http://example.com/feed", {})
        created = transport._client
        await transport.close()

        assert created is not client
        assert created.is_closed
        assert not client.is_closed


class TestGzipDecompressor:
    def test_round_trip(self):
        """gzip data is inflated."""
        assert GzipDecompressor().decompress(gzip.compress(b"feed")) == b"feed"

    def test_empty_body(self):
        """An empty body stays empty."""
        assert GzipDecompressor().decompress(b"") == b""

    def test_invalid_data(self):
        """Corrupt data raises ValueError."""
        with pytest.raises(ValueError):
            GzipDecompressor().decompress(b"plain text")
