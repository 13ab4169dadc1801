"""Kubernetes and Istio resource clients."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from kubernetes.client import ApiClient, V1DeleteOptions
from kubernetes.client.exceptions import ApiException

from .cluster import ClusterConnection
from .models import ReconcileOptions, ResourceKind
from .utils import get_name, get_namespace


class ResourceClient(ABC):
    """
    CRUD handle for one resource kind.

    Objects go in and come out as plain manifest dicts with camelCase keys.
    Clients raise ApiException unchanged; callers decide how to wrap it.
    """

    kind: ResourceKind

    def __init__(self, kind: ResourceKind, options: ReconcileOptions):
        self.kind = kind
        self.options = options

    @abstractmethod
    def get(self, namespace: Optional[str], name: str) -> Optional[dict[str, Any]]:
        """
        Get an object.

        Args:
            namespace: Object namespace (ignored for cluster-scoped kinds)
            name: Object name

        Returns:
            Manifest dict or None if not found

        Raises:
            ApiException: For any failure other than 404
        """

    @abstractmethod
    def list(self, namespace: Optional[str]) -> list[dict[str, Any]]:
        """List all objects of this kind in a namespace."""

    @abstractmethod
    def create(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Create an object."""

    @abstractmethod
    def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Replace an object; obj must carry the current resourceVersion."""

    @abstractmethod
    def delete(self, namespace: Optional[str], name: str) -> None:
        """Delete an object and, in the foreground, its dependents."""

    def _delete_options(self) -> V1DeleteOptions:
        return V1DeleteOptions(
            grace_period_seconds=self.options.delete_grace_period_seconds,
            propagation_policy=self.options.delete_propagation_policy,
        )


class TypedResourceClient(ResourceClient):
    """Client backed by a typed API (CoreV1Api, AppsV1Api)."""

    def __init__(
        self,
        kind: ResourceKind,
        api: Any,
        resource: str,
        api_client: ApiClient,
        options: ReconcileOptions,
        namespaced: bool = True,
    ):
        """
        Initialize typed resource client.

        Args:
            kind: Resource kind
            api: Typed API instance
            resource: Resource suffix of the API methods (e.g. "service")
            api_client: Used to turn returned models into dicts
            options: Reconcile options
            namespaced: False for cluster-scoped kinds such as namespaces
        """
        super().__init__(kind, options)
        self.api = api
        self.resource = resource
        self.api_client = api_client
        self.namespaced = namespaced

    def _method(self, verb: str):
        if self.namespaced:
            return getattr(self.api, f"{verb}_namespaced_{self.resource}")
        return getattr(self.api, f"{verb}_{self.resource}")

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        return self.api_client.sanitize_for_serialization(obj)

    def _scope(self, namespace: Optional[str]) -> dict[str, Any]:
        return {"namespace": namespace} if self.namespaced else {}

    def get(self, namespace: Optional[str], name: str) -> Optional[dict[str, Any]]:
        try:
            obj = self._method("read")(name=name, **self._scope(namespace))
        except ApiException as e:
            if e.status == 404:
                return None
            raise
        return self._to_dict(obj)

    def list(self, namespace: Optional[str]) -> list[dict[str, Any]]:
        result = self._method("list")(
            timeout_seconds=self.options.list_timeout_seconds,
            **self._scope(namespace),
        )
        return [self._to_dict(item) for item in result.items]

    def create(self, obj: dict[str, Any]) -> dict[str, Any]:
        created = self._method("create")(
            body=obj,
            field_manager=self.options.field_manager,
            **self._scope(get_namespace(obj)),
        )
        return self._to_dict(created)

    def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        updated = self._method("replace")(
            name=get_name(obj),
            body=obj,
            field_manager=self.options.field_manager,
            **self._scope(get_namespace(obj)),
        )
        return self._to_dict(updated)

    def delete(self, namespace: Optional[str], name: str) -> None:
        self._method("delete")(
            name=name,
            body=self._delete_options(),
            **self._scope(namespace),
        )


class IstioResourceClient(ResourceClient):
    """Client for Istio networking resources via CustomObjectsApi."""

    def __init__(
        self,
        kind: ResourceKind,
        custom_objects: Any,
        plural: str,
        options: ReconcileOptions,
    ):
        """
        Initialize Istio resource client.

        Args:
            kind: Resource kind
            custom_objects: CustomObjectsApi instance
            plural: Resource plural (e.g. "virtualservices")
            options: Reconcile options
        """
        super().__init__(kind, options)
        self.custom_objects = custom_objects
        self.plural = plural

    def _target(self, namespace: Optional[str]) -> dict[str, Any]:
        return {
            "group": self.options.istio_group,
            "version": self.options.istio_version,
            "namespace": namespace,
            "plural": self.plural,
        }

    def get(self, namespace: Optional[str], name: str) -> Optional[dict[str, Any]]:
        try:
            return self.custom_objects.get_namespaced_custom_object(
                name=name, **self._target(namespace)
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    def list(self, namespace: Optional[str]) -> list[dict[str, Any]]:
        result = self.custom_objects.list_namespaced_custom_object(
            timeout_seconds=self.options.list_timeout_seconds,
            **self._target(namespace),
        )
        return result.get("items", [])

    def create(self, obj: dict[str, Any]) -> dict[str, Any]:
        return self.custom_objects.create_namespaced_custom_object(
            body=obj,
            field_manager=self.options.field_manager,
            **self._target(get_namespace(obj)),
        )

    def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        return self.custom_objects.replace_namespaced_custom_object(
            name=get_name(obj),
            body=obj,
            field_manager=self.options.field_manager,
            **self._target(get_namespace(obj)),
        )

    def delete(self, namespace: Optional[str], name: str) -> None:
        self.custom_objects.delete_namespaced_custom_object(
            name=name,
            body=self._delete_options(),
            **self._target(namespace),
        )


def build_resource_clients(
    connection: ClusterConnection, options: ReconcileOptions
) -> dict[ResourceKind, ResourceClient]:
    """
    Build one client per resource kind.

    Args:
        connection: Cluster connection
        options: Reconcile options

    Returns:
        Mapping of resource kind to client
    """
    api_client = connection.api_client
    return {
        ResourceKind.NAMESPACE: TypedResourceClient(
            ResourceKind.NAMESPACE, connection.core_v1, "namespace", api_client, options, namespaced=False
        ),
        ResourceKind.SERVICE: TypedResourceClient(
            ResourceKind.SERVICE, connection.core_v1, "service", api_client, options
        ),
        ResourceKind.DEPLOYMENT: TypedResourceClient(
            ResourceKind.DEPLOYMENT, connection.apps_v1, "deployment", api_client, options
        ),
        ResourceKind.VIRTUAL_SERVICE: IstioResourceClient(
            ResourceKind.VIRTUAL_SERVICE, connection.custom_objects, "virtualservices", options
        ),
        ResourceKind.DESTINATION_RULE: IstioResourceClient(
            ResourceKind.DESTINATION_RULE, connection.custom_objects, "destinationrules", options
        ),
        ResourceKind.GATEWAY: IstioResourceClient(
            ResourceKind.GATEWAY, connection.custom_objects, "gateways", options
        ),
    }
