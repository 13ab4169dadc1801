"""Reconciliation errors."""

from typing import Optional

from kubernetes.client.exceptions import ApiException

from .models import ResourceKind


class ReconcileError(Exception):
    """Raised when a read or write against the cluster fails."""

    retryable = False

    def __init__(
        self,
        operation: str,
        kind: ResourceKind,
        name: str,
        namespace: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        self.operation = operation
        self.kind = kind
        self.name = name
        self.namespace = namespace
        self.cause = cause

        target = f"{namespace}/{name}" if namespace else name
        message = f"Failed to {operation} {kind.value} '{target}'"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)

    @classmethod
    def from_api_exception(
        cls,
        operation: str,
        kind: ResourceKind,
        name: str,
        namespace: Optional[str],
        error: ApiException,
    ) -> "ReconcileError":
        """
        Wrap an ApiException in the matching error type.

        Args:
            operation: Operation that failed
            kind: Resource kind
            name: Resource name
            namespace: Resource namespace (None for cluster-scoped)
            error: Original exception

        Returns:
            ResourceConflictError on 409, ResourceNotFoundError on 404,
            ReconcileError otherwise
        """
        if error.status == 409:
            error_cls = ResourceConflictError
        elif error.status == 404:
            error_cls = ResourceNotFoundError
        else:
            error_cls = ReconcileError
        return error_cls(operation, kind, name, namespace=namespace, cause=error)


class ResourceConflictError(ReconcileError):
    """Write rejected because of a stale version or an existing object."""

    retryable = True


class ResourceNotFoundError(ReconcileError):
    """Target object does not exist."""

    pass
