"""Pytest configuration and fixtures for K8s driver tests."""

import copy
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest
from kubernetes import client
from kubernetes.client.exceptions import ApiException

from kardinal_k8s import ClusterResourceManager, ReconcileOptions, ResourceClient, ResourceKind


class FakeResourceClient(ResourceClient):
    """In-memory resource store with resourceVersion checks and failure injection."""

    def __init__(self, kind: ResourceKind, journal: Optional[list] = None):
        super().__init__(kind, ReconcileOptions())
        self.objects: dict[tuple[Optional[str], str], dict[str, Any]] = {}
        self.failures: dict[tuple[str, str], ApiException] = {}
        self.journal = journal if journal is not None else []
        self._version = 0

    def _key(self, namespace: Optional[str], name: str):
        if self.kind == ResourceKind.NAMESPACE:
            return (None, name)
        return (namespace, name)

    def _record(self, verb: str, namespace: Optional[str], name: str) -> None:
        self.journal.append((self.kind, verb, namespace, name))
        failure = self.failures.get((verb, name))
        if failure is not None:
            raise failure

    def _store(self, obj: dict[str, Any]) -> dict[str, Any]:
        self._version += 1
        stored = copy.deepcopy(obj)
        stored.setdefault("metadata", {})["resourceVersion"] = str(self._version)
        metadata = stored["metadata"]
        self.objects[self._key(metadata.get("namespace"), metadata["name"])] = stored
        return copy.deepcopy(stored)

    def seed(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Put an object in the store without recording a call."""
        return self._store(obj)

    def names(self, namespace: Optional[str] = None) -> list[str]:
        return [name for (ns, name) in self.objects if namespace is None or ns == namespace]

    def get(self, namespace, name):
        self._record("get", namespace, name)
        obj = self.objects.get(self._key(namespace, name))
        return copy.deepcopy(obj) if obj is not None else None

    def list(self, namespace):
        self._record("list", namespace, "*")
        return [
            copy.deepcopy(obj)
            for (ns, _), obj in self.objects.items()
            if self.kind == ResourceKind.NAMESPACE or ns == namespace
        ]

    def create(self, obj):
        metadata = obj["metadata"]
        self._record("create", metadata.get("namespace"), metadata["name"])
        if self._key(metadata.get("namespace"), metadata["name"]) in self.objects:
            raise ApiException(status=409, reason="AlreadyExists")
        return self._store(obj)

    def update(self, obj):
        metadata = obj["metadata"]
        self._record("update", metadata.get("namespace"), metadata["name"])
        current = self.objects.get(self._key(metadata.get("namespace"), metadata["name"]))
        if current is None:
            raise ApiException(status=404, reason="NotFound")
        if metadata.get("resourceVersion") != current["metadata"]["resourceVersion"]:
            raise ApiException(status=409, reason="Conflict")
        return self._store(obj)

    def delete(self, namespace, name):
        self._record("delete", namespace, name)
        if self.objects.pop(self._key(namespace, name), None) is None:
            raise ApiException(status=404, reason="NotFound")


def make_manifest(kind: str, name: str, namespace: str, spec: Optional[dict] = None) -> dict[str, Any]:
    api_versions = {
        "Service": "v1",
        "Deployment": "apps/v1",
        "VirtualService": "networking.istio.io/v1alpha3",
        "DestinationRule": "networking.istio.io/v1alpha3",
        "Gateway": "networking.istio.io/v1alpha3",
    }
    return {
        "apiVersion": api_versions[kind],
        "kind": kind,
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec or {},
    }


@pytest.fixture
def journal():
    """Shared call log across fake clients, in call order."""
    return []


@pytest.fixture
def fake_clients(journal):
    """One fake client per resource kind."""
    return {kind: FakeResourceClient(kind, journal) for kind in ResourceKind}


@pytest.fixture
def manager(fake_clients):
    """ClusterResourceManager backed by fake clients."""
    return ClusterResourceManager(fake_clients)


@pytest.fixture
def sample_service():
    return make_manifest("Service", "orders", "shop", {"ports": [{"port": 8080}]})


@pytest.fixture
def sample_virtual_service():
    return make_manifest(
        "VirtualService",
        "orders",
        "shop",
        {
            "hosts": ["orders"],
            "http": [{"name": "default", "route": [{"destination": {"host": "orders", "subset": "prod"}}]}],
        },
    )


@pytest.fixture
def sample_destination_rule():
    return make_manifest(
        "DestinationRule",
        "orders",
        "shop",
        {
            "host": "orders",
            "subsets": [
                {"name": "prod", "labels": {"version": "prod"}},
                {"name": "dev", "labels": {"version": "dev"}},
            ],
        },
    )


@pytest.fixture
def mock_cluster_connection():
    """Mock cluster connection for testing."""
    mock_conn = MagicMock()
    mock_conn.core_v1 = MagicMock(spec=client.CoreV1Api)
    mock_conn.apps_v1 = MagicMock(spec=client.AppsV1Api)
    mock_conn.custom_objects = MagicMock(spec=client.CustomObjectsApi)
    mock_conn.api_client = client.ApiClient()
    return mock_conn


@pytest.fixture
def manifest():
    """Factory for minimal manifests: manifest(kind, name, namespace, spec=None)."""
    return make_manifest
