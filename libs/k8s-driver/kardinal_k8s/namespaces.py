"""Namespace provisioning with Istio sidecar injection."""

import logging

from kubernetes.client.exceptions import ApiException

from .exceptions import ReconcileError
from .models import ISTIO_INJECTION_ENABLED, ISTIO_INJECTION_LABEL, ResourceKind
from .resources import ResourceClient

logger = logging.getLogger(__name__)


def ensure_namespace(client: ResourceClient, name: str) -> None:
    """
    Make sure a namespace exists and has Istio injection enabled.

    Existing namespaces are label-patched in place, never recreated.

    Args:
        client: Namespace client
        name: Namespace name

    Raises:
        ReconcileError: If the namespace cannot be read, created or relabeled
    """
    try:
        existing = client.get(None, name)
    except ApiException as e:
        raise ReconcileError.from_api_exception("get", ResourceKind.NAMESPACE, name, None, e) from e

    if existing is None:
        namespace = {
            "apiVersion": "v1",
            "kind": "Namespace",
            "metadata": {
                "name": name,
                "labels": {ISTIO_INJECTION_LABEL: ISTIO_INJECTION_ENABLED},
            },
        }
        try:
            client.create(namespace)
        except ApiException as e:
            raise ReconcileError.from_api_exception(
                "create", ResourceKind.NAMESPACE, name, None, e
            ) from e
        logger.info(f"Created namespace {name}")
        return

    metadata = existing.setdefault("metadata", {})
    labels = metadata.get("labels") or {}
    if labels.get(ISTIO_INJECTION_LABEL) == ISTIO_INJECTION_ENABLED:
        logger.debug(f"Namespace {name} already has istio injection enabled")
        return

    labels[ISTIO_INJECTION_LABEL] = ISTIO_INJECTION_ENABLED
    metadata["labels"] = labels
    try:
        client.update(existing)
    except ApiException as e:
        logger.error(f"Failed to enable istio injection on namespace {name}: {e}")
        raise ReconcileError.from_api_exception(
            "update", ResourceKind.NAMESPACE, name, None, e
        ) from e
    logger.info(f"Enabled istio injection on namespace {name}")
