"""Serialization of cache entries.

Entries are pickled so that whatever a content hook produces (bytes, parsed
documents, dicts) survives the round trip through the cache unchanged.
Unpickling runs arbitrary code, so only decode blobs from a trusted store.
"""

import pickle

from .errors import CacheDecodeError
from .models import CachedEntry

FORMAT_VERSION = 1


def encode_entry(entry: CachedEntry) -> bytes:
    """Serialize a cache entry into a blob."""
    return pickle.dumps(
        {
            "v": FORMAT_VERSION,
            "etag": entry.etag,
            "last_modified": entry.last_modified,
            "content": entry.content,
        },
        protocol=pickle.HIGHEST_PROTOCOL,
    )


def decode_entry(blob: bytes) -> CachedEntry:
    """Deserialize a blob produced by encode_entry.

    Raises CacheDecodeError for anything that is not a well-formed entry.
    """
    if not isinstance(blob, (bytes, bytearray, memoryview)):
        raise CacheDecodeError(f"expected bytes, got {type(blob).__name__}")
    try:
        record = pickle.loads(blob)
    except Exception as e:
        raise CacheDecodeError(f"unreadable cache blob: {e}") from e

    if not isinstance(record, dict) or record.get("v") != FORMAT_VERSION:
        raise CacheDecodeError("unrecognized cache record format")

    return CachedEntry(
        etag=record.get("etag"),
        last_modified=record.get("last_modified"),
        content=record.get("content"),
    )
