"""Declarative reconciliation of TowerOps sites and devices."""

__version__ = "0.1.0"

from .client import HttpTransport, ResourceClient
from .config import ProviderConfig, load_config
from .engine import Reconciler, ReconcileResult, SchemaValidator, validate_and_default
from .errors import (
    ReconcileError,
    ValidationError,
    NotFoundError,
    RemoteError,
    RecreateError,
    ReplacementRequiredError,
)
from .resources import (
    Device,
    FieldValue,
    LifecycleState,
    OrganizationParent,
    ResourceInstance,
    ResourceKind,
    Site,
    SiteParent,
)

__all__ = [
    "__version__",
    "Reconciler",
    "ReconcileResult",
    "SchemaValidator",
    "validate_and_default",
    "ResourceClient",
    "HttpTransport",
    "ProviderConfig",
    "load_config",
    "ReconcileError",
    "ValidationError",
    "NotFoundError",
    "RemoteError",
    "RecreateError",
    "ReplacementRequiredError",
    "FieldValue",
    "ResourceKind",
    "ResourceInstance",
    "LifecycleState",
    "Site",
    "Device",
    "SiteParent",
    "OrganizationParent",
]
