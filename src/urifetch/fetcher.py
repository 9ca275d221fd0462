"""Conditional GET with cache-backed validators."""

import inspect
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Any, Callable
from urllib.parse import urljoin

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .codec import decode_entry, encode_entry
from .config import FetchSettings, settings as default_settings
from .core.compression import GzipDecompressor
from .core.protocols import Decompressor, Transport, TransportResponse
from .core.transport import HttpxTransport
from .errors import CacheDecodeError, ConfigurationError, FetchFailure
from .log import get_logger
from .models import CachedEntry, FetchResult, FetchStatus

logger = get_logger(__name__)

DEFAULT_DECOMPRESSOR = GzipDecompressor()


def parse_http_date(value: str | None) -> datetime | None:
    """Parse an HTTP-date header value; None if absent or malformed."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_http_date(value: datetime) -> str:
    """Render a datetime as an IMF-fixdate string."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


async def _resolve(value: Any) -> Any:
    """Await value if the collaborator returned an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


class FetchOptions(BaseModel):
    """Per-call options accepted by ConditionalFetcher.fetch."""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    cache: Any = None
    etag: str | None = None
    last_modified: datetime | None = None
    transport: Any = None
    content_alter_hook: Callable[[Any], Any] | None = None

    @field_validator("cache")
    @classmethod
    def _check_cache(cls, v: Any) -> Any:
        if v is not None and not (callable(getattr(v, "get", None)) and callable(getattr(v, "set", None))):
            raise ValueError("cache must provide get() and set()")
        return v

    @field_validator("transport")
    @classmethod
    def _check_transport(cls, v: Any) -> Any:
        if v is not None and not callable(getattr(v, "request", None)):
            raise ValueError("transport must provide request()")
        return v

    @field_validator("last_modified", mode="before")
    @classmethod
    def _coerce_last_modified(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("last_modified must be a datetime, epoch seconds or an HTTP date")
        if isinstance(v, (int, float)):
            try:
                return datetime.fromtimestamp(v, tz=timezone.utc)
            except (OverflowError, OSError, ValueError) as e:
                raise ValueError(f"last_modified out of range: {v!r}") from e
        if isinstance(v, str):
            parsed = parse_http_date(v)
            if parsed is None:
                raise ValueError(f"unparseable HTTP date: {v!r}")
            return parsed
        return v

    @field_validator("last_modified")
    @classmethod
    def _ensure_aware(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def from_kwargs(cls, options: dict[str, Any]) -> "FetchOptions":
        """Validate keyword options, raising ConfigurationError on bad input."""
        try:
            return cls(**options)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'options'}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigurationError(f"Invalid fetch options: {problems}") from e


class ConditionalFetcher:
    """Fetches URIs with conditional GETs and remembers validators in a cache.

    The decompressor is fixed at construction: pass None to stop advertising
    gzip. When no transport is given, an HttpxTransport is created on first
    use and closed by close().
    """

    def __init__(
        self,
        transport: Transport | None = None,
        decompressor: Decompressor | None = DEFAULT_DECOMPRESSOR,
        user_agent: str | None = None,
        settings: FetchSettings | None = None,
    ):
        self.settings = settings or default_settings
        self.transport = transport
        self.decompressor = decompressor
        self.user_agent = user_agent or self.settings.user_agent
        self._owned_transport: HttpxTransport | None = None

    async def __aenter__(self) -> "ConditionalFetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _default_transport(self) -> Transport:
        if self.transport is not None:
            return self.transport
        if self._owned_transport is None:
            self._owned_transport = HttpxTransport(
                timeout=self.settings.timeout,
                max_connections=self.settings.max_connections,
                max_keepalive_connections=self.settings.max_keepalive_connections,
                max_redirects=self.settings.max_redirects,
            )
        return self._owned_transport

    async def _load_cached(self, cache: Any, uri: str) -> CachedEntry | None:
        blob = await _resolve(cache.get(uri))
        if blob is None:
            return None
        try:
            return decode_entry(blob)
        except CacheDecodeError as e:
            logger.warning("cache_entry_unreadable", uri=uri, error=str(e))
            return None

    def build_headers(self, etag: str | None, last_modified: datetime | None) -> dict[str, str]:
        """Request headers for a conditional GET."""
        headers = {"User-Agent": self.user_agent}
        if self.decompressor is not None:
            headers["Accept-Encoding"] = self.decompressor.encoding
        if etag:
            headers["If-None-Match"] = etag
        if last_modified:
            headers["If-Modified-Since"] = format_http_date(last_modified)
        return headers

    def _decode_body(self, res: TransportResponse, uri: str) -> bytes:
        body = res.body
        encoding = (res.headers.get("Content-Encoding") or "").strip().lower()
        if self.decompressor is not None and encoding == self.decompressor.encoding:
            try:
                body = self.decompressor.decompress(body)
            except ValueError as e:
                raise FetchFailure(str(e), uri=uri, status_code=res.status) from e
        return body

    async def fetch(self, uri: str, **options: Any) -> FetchResult:
        """Fetch uri, using validators from options or the cache.

        Options: cache, etag, last_modified, transport, content_alter_hook.

        Raises:
            ConfigurationError: options are invalid (checked before any I/O).
            FetchFailure: network error or an unhandled HTTP status.
        """
        opts = FetchOptions.from_kwargs(options)
        log = logger.bind(uri=uri)

        cached = None
        if opts.cache is not None:
            cached = await self._load_cached(opts.cache, uri)

        etag = opts.etag or (cached.etag if cached else None)
        last_modified = opts.last_modified or (cached.last_modified if cached else None)
        headers = self.build_headers(etag, last_modified)
        log.debug("fetch_request", etag=etag, last_modified=str(last_modified) if last_modified else None)

        transport = opts.transport or self._default_transport()
        res = await transport.request("GET", uri, headers)

        result = FetchResult(
            uri=uri,
            status=FetchStatus.OK,
            http_status=res.status,
            raw_response=res,
        )

        previous = res.previous
        if previous is not None and previous.status == FetchStatus.MOVED_PERMANENTLY:
            location = previous.headers.get("Location")
            result.status = FetchStatus.MOVED_PERMANENTLY
            result.uri = urljoin(previous.url, location) if location else None
            log.info("fetch_moved_permanently", location=result.uri, http_status=res.status)
            return result

        if res.status == FetchStatus.GONE:
            result.status = FetchStatus.GONE
            result.uri = None
            log.info("fetch_gone")
            return result

        if res.status == FetchStatus.NOT_MODIFIED:
            result.status = FetchStatus.NOT_MODIFIED
            if cached is not None:
                result.content = cached.content
                result.etag = cached.etag
                result.last_modified = cached.last_modified
            log.info("fetch_not_modified", from_cache=cached is not None)
            return result

        if not res.is_success:
            log.info("fetch_failed", http_status=res.status, reason=res.reason)
            raise FetchFailure(res.reason or f"HTTP {res.status}", uri=uri, status_code=res.status)

        result.etag = res.headers.get("ETag")
        result.last_modified = parse_http_date(res.headers.get("Last-Modified"))

        content: Any = self._decode_body(res, uri)
        if opts.content_alter_hook is not None:
            content = await _resolve(opts.content_alter_hook(content))
        result.content = content

        if opts.cache is not None:
            blob = encode_entry(CachedEntry(
                etag=result.etag,
                last_modified=result.last_modified,
                content=result.content,
            ))
            await _resolve(opts.cache.set(uri, blob))

        log.info("fetch_ok", http_status=res.status, etag=result.etag)
        return result

    async def close(self):
        """Close the transport this fetcher created, if any."""
        if self._owned_transport is not None:
            await self._owned_transport.close()
            self._owned_transport = None
