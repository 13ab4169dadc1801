"""Reconciliation of cluster resource bundles."""

import logging
from typing import Any, Optional

from kubernetes.client.exceptions import ApiException

from .cluster import ClusterConnection
from .exceptions import ReconcileError, ResourceNotFoundError
from .models import ClusterResources, ReconcileOptions, ResourceKind
from .namespaces import ensure_namespace
from .prune import prune_namespace
from .resources import ResourceClient, build_resource_clients
from .routing import add_routing_rule, add_subset
from .upsert import create_or_update
from .utils import get_name, group_by_namespace

logger = logging.getLogger(__name__)


class ClusterResourceManager:
    """
    Applies and cleans up desired resource bundles.

    Each call is a single sequential pass with no internal retry. A failure
    aborts the rest of the pass and is raised to the caller; writes already
    made stay in place, and the whole call can be safely repeated.
    """

    def __init__(
        self,
        clients: dict[ResourceKind, ResourceClient],
        options: Optional[ReconcileOptions] = None,
    ):
        """
        Initialize cluster resource manager.

        Args:
            clients: One resource client per kind
            options: Reconcile options
        """
        self.clients = clients
        self.options = options or ReconcileOptions()

    @classmethod
    def from_connection(
        cls, connection: ClusterConnection, options: Optional[ReconcileOptions] = None
    ) -> "ClusterResourceManager":
        """Build a manager talking to a live cluster."""
        options = options or ReconcileOptions()
        return cls(build_resource_clients(connection, options), options)

    def apply_cluster_resources(self, resources: Optional[ClusterResources]) -> None:
        """
        Create or update every resource of a bundle.

        Namespaces are ensured first, once each. Resources are then upserted
        kind by kind: services, deployments, virtual services, destination
        rules, gateway.

        Args:
            resources: Desired bundle

        Raises:
            ReconcileError: On the first failed step
        """
        if resources is None or not resources.is_valid():
            logger.debug("The received cluster resources are not valid, nothing to apply")
            return

        for namespace in resources.namespaces():
            try:
                ensure_namespace(self.clients[ResourceKind.NAMESPACE], namespace)
            except ReconcileError as e:
                logger.error(f"Error ensuring namespace {namespace}: {e}")
                raise

        for kind, manifests in resources.collections():
            client = self.clients[kind]
            for manifest in manifests:
                try:
                    create_or_update(client, manifest)
                except ReconcileError as e:
                    logger.error(f"Error creating or updating {kind.value} {get_name(manifest)}: {e}")
                    raise

    def clean_up_cluster_resources(self, resources: Optional[ClusterResources]) -> None:
        """
        Delete live resources that are not part of a bundle.

        Only (namespace, kind) pairs present in the bundle are pruned; kinds
        absent from the bundle are left alone.

        Args:
            resources: Desired bundle

        Raises:
            ReconcileError: On the first failed step
        """
        if resources is None or not resources.is_valid():
            logger.debug("The received cluster resources are not valid, nothing to clean up")
            return

        for kind, manifests in resources.collections():
            client = self.clients[kind]
            for namespace, group in group_by_namespace(manifests).items():
                keep = [get_name(manifest) for manifest in group]
                try:
                    deleted = prune_namespace(client, namespace, keep)
                except ReconcileError as e:
                    logger.error(f"Error cleaning up {kind.value} resources in namespace {namespace}: {e}")
                    raise
                if deleted:
                    logger.info(f"Cleaned up {len(deleted)} {kind.value} resources in namespace {namespace}")

    def add_routing_rule(self, namespace: str, virtual_service: str, rule: dict[str, Any]) -> dict[str, Any]:
        """Prepend an HTTP route to a VirtualService."""
        return add_routing_rule(self.clients[ResourceKind.VIRTUAL_SERVICE], namespace, virtual_service, rule)

    def add_subset(self, namespace: str, destination_rule: str, subset: dict[str, Any]) -> dict[str, Any]:
        """Insert or replace a subset of a DestinationRule."""
        return add_subset(self.clients[ResourceKind.DESTINATION_RULE], namespace, destination_rule, subset)

    def get_virtual_services(self, namespace: str) -> list[dict[str, Any]]:
        """List the VirtualServices in a namespace."""
        return self._list(ResourceKind.VIRTUAL_SERVICE, namespace)

    def get_virtual_service(self, namespace: str, name: str) -> dict[str, Any]:
        """Get a VirtualService, raising ResourceNotFoundError if it does not exist."""
        return self._get(ResourceKind.VIRTUAL_SERVICE, namespace, name)

    def get_destination_rules(self, namespace: str) -> list[dict[str, Any]]:
        """List the DestinationRules in a namespace."""
        return self._list(ResourceKind.DESTINATION_RULE, namespace)

    def get_destination_rule(self, namespace: str, name: str) -> dict[str, Any]:
        """Get a DestinationRule, raising ResourceNotFoundError if it does not exist."""
        return self._get(ResourceKind.DESTINATION_RULE, namespace, name)

    def _list(self, kind: ResourceKind, namespace: str) -> list[dict[str, Any]]:
        try:
            return self.clients[kind].list(namespace)
        except ApiException as e:
            raise ReconcileError.from_api_exception("list", kind, "*", namespace, e) from e

    def _get(self, kind: ResourceKind, namespace: str, name: str) -> dict[str, Any]:
        try:
            obj = self.clients[kind].get(namespace, name)
        except ApiException as e:
            raise ReconcileError.from_api_exception("get", kind, name, namespace, e) from e
        if obj is None:
            raise ResourceNotFoundError("get", kind, name, namespace=namespace)
        return obj
