"""Result and cache-state models for conditional fetches."""

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Any


class FetchStatus(IntEnum):
    """Semantic outcome of a fetch.

    Values mirror the HTTP codes they are named after. There is no error
    member: failures are raised as FetchFailure instead.
    """

    OK = 200
    MOVED_PERMANENTLY = 301
    NOT_MODIFIED = 304
    GONE = 410


@dataclass
class CachedEntry:
    """Validators and content remembered from the last successful fetch."""

    etag: str | None = None
    last_modified: datetime | None = None
    content: Any = None


@dataclass
class FetchResult:
    """Outcome of ConditionalFetcher.fetch."""

    uri: str | None
    status: FetchStatus
    http_status: int
    etag: str | None = None
    last_modified: datetime | None = None
    content: Any = None
    raw_response: Any = None

    @property
    def is_modified(self) -> bool:
        """True when fresh content was transferred."""
        return self.status == FetchStatus.OK

    @property
    def content_text(self) -> str:
        """Decode byte content as UTF-8; other content is rendered with str()."""
        if self.content is None:
            return ""
        if isinstance(self.content, bytes):
            return self.content.decode("utf-8", errors="replace")
        return str(self.content)
