"""Remote resource client and HTTP transport."""
from .api import (
    API_PREFIX,
    ResourceClient,
    collection_path,
    envelope,
    member_path,
    parse_remote_error,
)
from .transport import HttpTransport, RawResponse

__all__ = [
    "ResourceClient",
    "HttpTransport",
    "RawResponse",
    "API_PREFIX",
    "collection_path",
    "member_path",
    "envelope",
    "parse_remote_error",
]
