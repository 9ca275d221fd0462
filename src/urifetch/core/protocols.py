"""Protocol definitions for the fetcher's collaborators."""

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol


@dataclass
class Hop:
    """One intermediate response in a redirect chain."""

    url: str
    status: int
    headers: Mapping[str, str]


@dataclass
class TransportResponse:
    """Terminal HTTP response plus the redirects that led to it.

    ``body`` is the raw entity body, still content-encoded. ``headers`` must
    be case-insensitive for lookups (httpx.Headers is).
    """

    url: str
    status: int
    reason: str
    headers: Mapping[str, str]
    body: bytes
    history: list[Hop] = field(default_factory=list)
    raw: Any = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300

    @property
    def previous(self) -> Hop | None:
        """The hop immediately before the terminal response, if any."""
        return self.history[-1] if self.history else None


class Transport(Protocol):
    """Protocol for HTTP transports.

    Implementations follow redirects themselves and report every hop.
    """

    async def request(
        self, method: str, uri: str, headers: Mapping[str, str]
    ) -> TransportResponse:
        """Perform a request and return the terminal response."""
        ...


class Decompressor(Protocol):
    """Protocol for content-encoding decoders."""

    encoding: str

    def decompress(self, data: bytes) -> bytes:
        """Reverse the content encoding."""
        ...
