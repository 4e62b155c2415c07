"""Exception hierarchy for the reconciliation engine.

Every failure the engine can report derives from ReconcileError:

- ValidationError: local field errors, raised before any network call
- ClientError subclasses: outcome of a single remote call
  (NotFoundError, RemoteError, DecodeError, TransportError)
- OperationError / RecreateError: a reconciler operation failed, wrapping
  the client error that caused it
- ReplacementRequiredError: an identity-defining attribute changed
- LifecycleError: operation not allowed in the instance's current state
- ConfigError: invalid provider configuration
"""
from typing import Any, Optional


class ReconcileError(Exception):
    """Base class for all reconciliation errors."""
    pass


class ConfigError(ReconcileError):
    """Provider configuration is missing or invalid."""
    pass


class ValidationError(ReconcileError):
    """Declared configuration failed local validation."""

    def __init__(self, errors: list):
        self.errors = list(errors)
        details = "; ".join(str(e) for e in self.errors)
        super().__init__(f"Validation failed: {details}")


# --- Client outcomes ---

class ClientError(ReconcileError):
    """Outcome of a single remote call that was not a success."""
    pass


class NotFoundError(ClientError):
    """The remote object does not exist (HTTP 404)."""

    def __init__(self, kind: str, resource_id: Optional[str] = None):
        self.kind = kind
        self.resource_id = resource_id
        target = f"{kind} {resource_id}" if resource_id else kind
        super().__init__(f"{target} not found")


class RemoteError(ClientError):
    """The API answered with a non-2xx, non-404 status."""

    def __init__(
        self,
        status_code: int,
        message: Optional[str] = None,
        field_errors: Optional[dict[str, str]] = None,
        body: str = "",
    ):
        self.status_code = status_code
        self.message = message
        self.field_errors = field_errors or {}
        self.body = body

        if message:
            text = f"API error ({status_code}): {message}"
        elif self.field_errors:
            text = f"API validation error ({status_code}): {self.field_errors}"
        else:
            text = f"API error ({status_code}): {body}"
        super().__init__(text)


class DecodeError(ClientError):
    """A successful response carried a body that could not be decoded."""
    pass


class TransportError(ClientError):
    """The request never produced an HTTP response."""
    pass


# --- Reconciler outcomes ---

class OperationError(ReconcileError):
    """A reconciler operation failed; `cause` holds the underlying error."""

    def __init__(self, operation: str, kind: str, cause: Exception):
        self.operation = operation
        self.kind = kind
        self.cause = cause
        super().__init__(self._format())

    def _format(self) -> str:
        return f"Failed to {self.operation} {self.kind}: {self.cause}"


class RecreateError(OperationError):
    """Recreating an object after a 404 on update failed."""

    def __init__(self, kind: str, cause: Exception, stale_id: Optional[str] = None):
        self.stale_id = stale_id
        super().__init__("create", kind, cause)

    def _format(self) -> str:
        return f"Failed to create {self.kind} (after 404 on update): {self.cause}"


class ReplacementRequiredError(ReconcileError):
    """An immutable attribute changed; the object must be destroyed and recreated."""

    def __init__(self, kind: str, fields: list[str], resource_id: Optional[Any] = None):
        self.kind = kind
        self.fields = list(fields)
        self.resource_id = resource_id
        super().__init__(
            f"Changing {', '.join(self.fields)} on {kind} {resource_id} "
            f"requires replacement"
        )


class LifecycleError(ReconcileError):
    """Operation is not valid for the instance's lifecycle state."""
    pass
