"""Kubernetes and Istio resource models for Kardinal."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ISTIO_INJECTION_LABEL = "istio-injection"
ISTIO_INJECTION_ENABLED = "enabled"


class ResourceKind(str, Enum):
    """Resource kinds handled by the reconciler."""

    NAMESPACE = "namespace"
    SERVICE = "service"
    DEPLOYMENT = "deployment"
    VIRTUAL_SERVICE = "virtual_service"
    DESTINATION_RULE = "destination_rule"
    GATEWAY = "gateway"


# Manifest "kind" -> bundle field
MANIFEST_KINDS = {
    "Service": "services",
    "Deployment": "deployments",
    "VirtualService": "virtual_services",
    "DestinationRule": "destination_rules",
    "Gateway": "gateway",
}


class ReconcileOptions(BaseModel):
    """Options applied to every call against the resource stores."""

    model_config = ConfigDict(frozen=True)

    list_timeout_seconds: int = 10
    # Every object carries this field manager so other Kardinal components can modify it
    field_manager: str = "kardinal-manager"
    delete_grace_period_seconds: int = 0
    delete_propagation_policy: str = "Foreground"
    istio_group: str = "networking.istio.io"
    istio_version: str = "v1alpha3"


class ClusterConfig(BaseModel):
    """Cluster connection configuration."""

    kubeconfig_path: Optional[str] = None
    kubeconfig_data: Optional[str] = None  # Base64 encoded kubeconfig
    context: Optional[str] = None  # Specific context to use


def _check_manifest(manifest: dict[str, Any]) -> dict[str, Any]:
    metadata = manifest.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ValueError(f"{manifest.get('kind', 'resource')} metadata must be a mapping")
    if not metadata.get("name"):
        raise ValueError(f"{manifest.get('kind', 'resource')} manifest is missing metadata.name")
    if not metadata.get("namespace"):
        raise ValueError(
            f"{manifest.get('kind', 'resource')} '{metadata['name']}' is missing metadata.namespace"
        )
    return manifest


class ClusterResources(BaseModel):
    """
    Desired state for one reconciliation call.

    A field left as None means the kind is not part of the bundle at all,
    which is different from an empty list: cleanup skips absent kinds.
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    services: Optional[list[dict[str, Any]]] = None
    deployments: Optional[list[dict[str, Any]]] = None
    virtual_services: Optional[list[dict[str, Any]]] = Field(default=None, alias="virtualServices")
    destination_rules: Optional[list[dict[str, Any]]] = Field(default=None, alias="destinationRules")
    gateway: Optional[dict[str, Any]] = None

    @field_validator("services", "deployments", "virtual_services", "destination_rules")
    @classmethod
    def _check_manifests(cls, value):
        if value is not None:
            for manifest in value:
                _check_manifest(manifest)
        return value

    @field_validator("gateway")
    @classmethod
    def _check_gateway(cls, value):
        if value is not None:
            _check_manifest(value)
        return value

    @classmethod
    def from_manifests(cls, manifests: list[dict[str, Any]]) -> "ClusterResources":
        """
        Build a bundle from a flat list of manifests.

        Args:
            manifests: Kubernetes/Istio manifests, any order

        Returns:
            ClusterResources with a list for every kind present

        Raises:
            ValueError: On a non-mapping manifest, an unsupported kind or more
                than one Gateway
        """
        fields: dict[str, Any] = {}
        for manifest in manifests:
            if not isinstance(manifest, dict):
                raise ValueError(f"Manifest must be a mapping: {manifest!r}")
            kind = manifest.get("kind")
            field = MANIFEST_KINDS.get(kind)
            if field is None:
                raise ValueError(f"Unsupported manifest kind: {kind}")
            if field == "gateway":
                if "gateway" in fields:
                    raise ValueError("A bundle holds at most one Gateway")
                fields["gateway"] = manifest
            else:
                fields.setdefault(field, []).append(manifest)
        return cls(**fields)

    def is_valid(self) -> bool:
        """Check that at least one kind is present."""
        return not (
            self.services is None
            and self.deployments is None
            and self.virtual_services is None
            and self.destination_rules is None
            and self.gateway is None
        )

    def collections(self) -> list[tuple[ResourceKind, list[dict[str, Any]]]]:
        """
        Present collections in reconciliation order.

        Returns:
            (kind, manifests) pairs; the gateway is a one-element collection
        """
        ordered = [
            (ResourceKind.SERVICE, self.services),
            (ResourceKind.DEPLOYMENT, self.deployments),
            (ResourceKind.VIRTUAL_SERVICE, self.virtual_services),
            (ResourceKind.DESTINATION_RULE, self.destination_rules),
            (ResourceKind.GATEWAY, [self.gateway] if self.gateway is not None else None),
        ]
        return [(kind, items) for kind, items in ordered if items is not None]

    def namespaces(self) -> list[str]:
        """Unique namespaces referenced by the bundle, in first-seen order."""
        seen: dict[str, None] = {}
        for _, items in self.collections():
            for manifest in items:
                seen.setdefault(manifest["metadata"]["namespace"], None)
        return list(seen)
