"""Create-or-update of desired resources."""

import copy
import logging
from typing import Any

from kubernetes.client.exceptions import ApiException

from .exceptions import ReconcileError
from .resources import ResourceClient
from .utils import get_name, get_namespace, get_resource_version, set_resource_version

logger = logging.getLogger(__name__)


def create_or_update(client: ResourceClient, obj: dict[str, Any]) -> dict[str, Any]:
    """
    Create an object, or replace it if it already exists.

    The update is a full replace carrying the live resourceVersion, so a
    concurrent writer surfaces as ResourceConflictError instead of a lost update.
    The caller's manifest is not modified.

    Args:
        client: Client for the object's kind
        obj: Desired manifest

    Returns:
        Object as written by the API server

    Raises:
        ReconcileError: If the read or the write fails
    """
    kind = client.kind
    name = get_name(obj)
    namespace = get_namespace(obj)

    try:
        existing = client.get(namespace, name)
    except ApiException as e:
        raise ReconcileError.from_api_exception("get", kind, name, namespace, e) from e

    desired = copy.deepcopy(obj)
    if existing is None:
        try:
            written = client.create(desired)
        except ApiException as e:
            raise ReconcileError.from_api_exception("create", kind, name, namespace, e) from e
        logger.info(f"Created {kind.value} {namespace}/{name}")
        return written

    set_resource_version(desired, get_resource_version(existing))
    try:
        written = client.update(desired)
    except ApiException as e:
        raise ReconcileError.from_api_exception("update", kind, name, namespace, e) from e
    logger.info(f"Updated {kind.value} {namespace}/{name}")
    return written
