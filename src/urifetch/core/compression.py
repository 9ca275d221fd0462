"""Gzip content-encoding support."""

import gzip
import zlib


class GzipDecompressor:
    """Decodes ``Content-Encoding: gzip`` bodies."""

    encoding = "gzip"

    def decompress(self, data: bytes) -> bytes:
        if not data:
            return data
        try:
            return gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as e:
            raise ValueError(f"Invalid gzip body: {e}") from e
