"""Transport and decoding collaborators."""

from .compression import GzipDecompressor
from .protocols import Decompressor, Hop, Transport, TransportResponse
from .transport import HttpxTransport

__all__ = [
    "Decompressor",
    "GzipDecompressor",
    "Hop",
    "HttpxTransport",
    "Transport",
    "TransportResponse",
]
