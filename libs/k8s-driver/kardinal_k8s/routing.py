"""Point mutations of VirtualService routes and DestinationRule subsets."""

import logging
from typing import Any

from kubernetes.client.exceptions import ApiException

from .exceptions import ReconcileError, ResourceNotFoundError
from .resources import ResourceClient

logger = logging.getLogger(__name__)


def _read(client: ResourceClient, namespace: str, name: str) -> dict[str, Any]:
    try:
        obj = client.get(namespace, name)
    except ApiException as e:
        raise ReconcileError.from_api_exception("get", client.kind, name, namespace, e) from e
    if obj is None:
        raise ResourceNotFoundError("get", client.kind, name, namespace=namespace)
    return obj


def _write(client: ResourceClient, obj: dict[str, Any], namespace: str, name: str) -> dict[str, Any]:
    # Written with the version read above; a concurrent writer gets a 409 or clobbers this one
    try:
        return client.update(obj)
    except ApiException as e:
        raise ReconcileError.from_api_exception("update", client.kind, name, namespace, e) from e


def add_routing_rule(
    client: ResourceClient, namespace: str, name: str, rule: dict[str, Any]
) -> dict[str, Any]:
    """
    Insert an HTTP route at the head of a VirtualService.

    Istio evaluates routes first-match, so new rules go first to take
    precedence over the ones already there.

    Args:
        client: VirtualService client
        namespace: VirtualService namespace
        name: VirtualService name
        rule: HTTPRoute

    Returns:
        Updated VirtualService

    Raises:
        ResourceNotFoundError: If the VirtualService does not exist
        ReconcileError: If the update fails
    """
    virtual_service = _read(client, namespace, name)
    spec = virtual_service.setdefault("spec", {})
    spec["http"] = [rule] + (spec.get("http") or [])

    updated = _write(client, virtual_service, namespace, name)
    logger.info(f"Added routing rule {rule.get('name', '<unnamed>')} to virtual service {namespace}/{name}")
    return updated


def add_subset(
    client: ResourceClient, namespace: str, name: str, subset: dict[str, Any]
) -> dict[str, Any]:
    """
    Insert or replace a named subset of a DestinationRule.

    A subset with the same name is replaced at its position; otherwise
    the subset is appended.

    Args:
        client: DestinationRule client
        namespace: DestinationRule namespace
        name: DestinationRule name
        subset: Subset with a "name"

    Returns:
        Updated DestinationRule

    Raises:
        ValueError: If the subset has no name
        ResourceNotFoundError: If the DestinationRule does not exist
        ReconcileError: If the update fails
    """
    if not subset.get("name"):
        raise ValueError("Subset must have a name")

    destination_rule = _read(client, namespace, name)
    spec = destination_rule.setdefault("spec", {})
    subsets = spec.get("subsets") or []

    for index, existing in enumerate(subsets):
        if existing.get("name") == subset["name"]:
            subsets[index] = subset
            break
    else:
        subsets.append(subset)
    spec["subsets"] = subsets

    updated = _write(client, destination_rule, namespace, name)
    logger.info(f"Set subset {subset['name']} on destination rule {namespace}/{name}")
    return updated
