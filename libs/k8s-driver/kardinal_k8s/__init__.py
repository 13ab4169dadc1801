"""Kardinal Kubernetes Driver - Reconciles Kubernetes and Istio resources."""

from .cluster import ClusterConnection
from .config import Settings, get_settings
from .exceptions import ReconcileError, ResourceConflictError, ResourceNotFoundError
from .manager import ClusterResourceManager
from .models import (
    ISTIO_INJECTION_ENABLED,
    ISTIO_INJECTION_LABEL,
    ClusterConfig,
    ClusterResources,
    ReconcileOptions,
    ResourceKind,
)
from .namespaces import ensure_namespace
from .prune import prune_namespace
from .resources import (
    IstioResourceClient,
    ResourceClient,
    TypedResourceClient,
    build_resource_clients,
)
from .routing import add_routing_rule, add_subset
from .upsert import create_or_update

__version__ = "0.1.0"

__all__ = [
    # Cluster connection
    "ClusterConnection",
    # Reconciliation
    "ClusterResourceManager",
    "ensure_namespace",
    "create_or_update",
    "prune_namespace",
    "add_routing_rule",
    "add_subset",
    # Resource clients
    "ResourceClient",
    "TypedResourceClient",
    "IstioResourceClient",
    "build_resource_clients",
    # Errors
    "ReconcileError",
    "ResourceConflictError",
    "ResourceNotFoundError",
    # Configuration
    "Settings",
    "get_settings",
    # Models
    "ClusterConfig",
    "ClusterResources",
    "ReconcileOptions",
    "ResourceKind",
    "ISTIO_INJECTION_LABEL",
    "ISTIO_INJECTION_ENABLED",
]
