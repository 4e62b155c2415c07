"""Remote resource client for the TowerOps API.

Issues exactly one request per call and translates the HTTP outcome into
the client error taxonomy:

    2xx            -> decoded Resource (or None for delete)
    404            -> NotFoundError
    other non-2xx  -> RemoteError (status + message or field errors)
    bad 2xx body   -> DecodeError
    no response    -> TransportError (raised by the transport)

The client never retries and never tracks lifecycle state.
"""
import json
import logging
from typing import Any, Optional, Protocol, Union

from ..config.settings import ProviderConfig
from ..errors import DecodeError, NotFoundError, RemoteError
from ..resources import Resource, ResourceKind, resource_class
from ..utils.logging_config import timed
from .transport import HttpTransport, RawResponse

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# Longest body excerpt carried by a RemoteError
MAX_BODY_EXCERPT = 500


class Transport(Protocol):
    """What the client needs from a transport."""

    async def do_request(
        self, method: str, path: str, body: Optional[dict[str, Any]] = None
    ) -> RawResponse:
        ...


class ResourceClient:
    """Create/read/update/delete sites and devices."""

    def __init__(self, transport: Transport):
        self.transport = transport

    @classmethod
    def from_config(cls, config: ProviderConfig, http_client=None) -> "ResourceClient":
        """Build a client and its HTTP transport from explicit configuration."""
        return cls(HttpTransport(config, http_client=http_client))

    @timed("create")
    async def create(self, kind: Union[ResourceKind, str], payload: dict[str, Any]) -> Resource:
        """Create an object; the response must carry the new id."""
        kind = ResourceKind(kind)
        response = await self.transport.do_request(
            "POST", collection_path(kind), envelope(kind, payload)
        )
        self._raise_for_status(kind, None, response)
        created = self._decode(kind, response)
        if not created.id:
            raise DecodeError(f"Create {kind.value} response did not include an id")
        return created

    @timed("read")
    async def read(self, kind: Union[ResourceKind, str], resource_id: str) -> Resource:
        kind = ResourceKind(kind)
        response = await self.transport.do_request("GET", member_path(kind, resource_id))
        self._raise_for_status(kind, resource_id, response)
        return self._decode(kind, response)

    @timed("update")
    async def update(
        self,
        kind: Union[ResourceKind, str],
        resource_id: str,
        payload: dict[str, Any],
    ) -> Resource:
        kind = ResourceKind(kind)
        response = await self.transport.do_request(
            "PATCH", member_path(kind, resource_id), envelope(kind, payload)
        )
        self._raise_for_status(kind, resource_id, response)
        return self._decode(kind, response)

    @timed("delete")
    async def delete(self, kind: Union[ResourceKind, str], resource_id: str) -> None:
        kind = ResourceKind(kind)
        response = await self.transport.do_request("DELETE", member_path(kind, resource_id))
        self._raise_for_status(kind, resource_id, response)

    def _raise_for_status(
        self,
        kind: ResourceKind,
        resource_id: Optional[str],
        response: RawResponse,
    ) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return
        if status == 404:
            raise NotFoundError(kind.value, resource_id)
        raise parse_remote_error(status, response.text)

    def _decode(self, kind: ResourceKind, response: RawResponse) -> Resource:
        try:
            data = json.loads(response.content)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(
                f"Failed to decode {kind.value} response ({response.status_code}): {e}"
            ) from e

        # Accept both bare objects and {"<kind>": {...}} envelopes
        if isinstance(data, dict) and set(data) == {kind.value} and isinstance(data[kind.value], dict):
            data = data[kind.value]

        if not isinstance(data, dict):
            raise DecodeError(
                f"Expected a JSON object for {kind.value}, got {type(data).__name__}"
            )
        return resource_class(kind).from_wire(data)

    async def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False


def collection_path(kind: ResourceKind) -> str:
    return f"{API_PREFIX}/{kind.collection}"


def member_path(kind: ResourceKind, resource_id: str) -> str:
    return f"{API_PREFIX}/{kind.collection}/{resource_id}"


def envelope(kind: ResourceKind, payload: dict[str, Any]) -> dict[str, Any]:
    """Wrap a payload in the single-key envelope named after the kind."""
    return {kind.value: payload}


def parse_remote_error(status_code: int, body: str) -> RemoteError:
    """Build a RemoteError from an error response body.

    Understands {"error": "message"} and {"errors": {"field": "msg" | [...]}};
    anything else is carried as a body excerpt.
    """
    excerpt = body[:MAX_BODY_EXCERPT]
    try:
        data = json.loads(body) if body else None
    except json.JSONDecodeError:
        data = None

    if isinstance(data, dict):
        message = data.get("error")
        if isinstance(message, str) and message:
            return RemoteError(status_code, message=message, body=excerpt)

        errors = data.get("errors")
        if isinstance(errors, dict) and errors:
            field_errors = {
                str(field): (
                    "; ".join(str(m) for m in messages)
                    if isinstance(messages, list) else str(messages)
                )
                for field, messages in errors.items()
            }
            return RemoteError(status_code, field_errors=field_errors, body=excerpt)

    return RemoteError(status_code, body=excerpt)
