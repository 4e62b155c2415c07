"""Shared fixtures: an in-memory TowerOps API stand-in."""
import pytest

from towerops_reconciler.engine import Reconciler
from towerops_reconciler.errors import NotFoundError
from towerops_reconciler.resources import ResourceKind, resource_class

INSERTED_AT = "2024-01-01T00:00:00Z"


class FakeClient:
    """ResourceClient stand-in that keeps objects in a dict.

    Ids are issued per kind as S1, S2, ... and D1, D2, ...
    """

    def __init__(self):
        self.objects: dict[tuple[ResourceKind, str], dict] = {}
        self.calls: list[tuple] = []
        # Fields merged into every created object (server-side defaults)
        self.create_overrides: dict = {}
        # Fields the server accepts but never returns
        self.hidden_fields: set[str] = set()
        self._errors: dict[str, list[Exception]] = {}
        self._counters: dict[ResourceKind, int] = {}

    def fail_next(self, operation: str, error: Exception) -> None:
        self._errors.setdefault(operation, []).append(error)

    def remove(self, kind, resource_id: str) -> None:
        """Delete an object out-of-band."""
        del self.objects[(ResourceKind(kind), resource_id)]

    def ops(self) -> list[str]:
        return [call[0] for call in self.calls]

    def _maybe_fail(self, operation: str) -> None:
        queue = self._errors.get(operation)
        if queue:
            raise queue.pop(0)

    def _respond(self, kind: ResourceKind, obj: dict):
        visible = {k: v for k, v in obj.items() if k not in self.hidden_fields}
        return resource_class(kind).from_wire(visible)

    def _lookup(self, kind: ResourceKind, resource_id: str) -> dict:
        try:
            return self.objects[(kind, resource_id)]
        except KeyError:
            raise NotFoundError(kind.value, resource_id) from None

    async def create(self, kind, payload):
        kind = ResourceKind(kind)
        self.calls.append(("create", kind, None, dict(payload)))
        self._maybe_fail("create")
        self._counters[kind] = self._counters.get(kind, 0) + 1
        new_id = f"{kind.value[0].upper()}{self._counters[kind]}"
        obj = {**payload, **self.create_overrides, "id": new_id, "inserted_at": INSERTED_AT}
        self.objects[(kind, new_id)] = obj
        return self._respond(kind, obj)

    async def read(self, kind, resource_id):
        kind = ResourceKind(kind)
        self.calls.append(("read", kind, resource_id, None))
        self._maybe_fail("read")
        return self._respond(kind, self._lookup(kind, resource_id))

    async def update(self, kind, resource_id, payload):
        kind = ResourceKind(kind)
        self.calls.append(("update", kind, resource_id, dict(payload)))
        self._maybe_fail("update")
        obj = self._lookup(kind, resource_id)
        obj.update(payload)
        return self._respond(kind, obj)

    async def delete(self, kind, resource_id):
        kind = ResourceKind(kind)
        self.calls.append(("delete", kind, resource_id, None))
        self._maybe_fail("delete")
        self._lookup(kind, resource_id)
        del self.objects[(kind, resource_id)]


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def reconciler(client):
    return Reconciler(client)
