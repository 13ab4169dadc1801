"""Deletion of live resources missing from the desired state."""

import logging
from typing import Iterable

from kubernetes.client.exceptions import ApiException

from .exceptions import ReconcileError
from .resources import ResourceClient
from .utils import get_name

logger = logging.getLogger(__name__)


def prune_namespace(client: ResourceClient, namespace: str, keep: Iterable[str]) -> list[str]:
    """
    Delete every object of the client's kind in a namespace that is not kept.

    Objects created between the list and the deletes are not seen and survive
    this pass. The first failed delete aborts the pass; earlier deletes stay.

    Args:
        client: Client for the kind to prune
        namespace: Namespace to prune
        keep: Names that must survive

    Returns:
        Names deleted, in list order

    Raises:
        ReconcileError: If listing or a delete fails
    """
    kind = client.kind
    keep_set = set(keep)

    try:
        live = client.list(namespace)
    except ApiException as e:
        raise ReconcileError.from_api_exception("list", kind, "*", namespace, e) from e

    deleted: list[str] = []
    for obj in live:
        name = get_name(obj)
        if name in keep_set:
            continue
        try:
            client.delete(namespace, name)
        except ApiException as e:
            if e.status == 404:
                logger.debug(f"{kind.value} {namespace}/{name} already gone")
                deleted.append(name)
                continue
            raise ReconcileError.from_api_exception("delete", kind, name, namespace, e) from e
        logger.info(f"Deleted {kind.value} {namespace}/{name}")
        deleted.append(name)

    return deleted
