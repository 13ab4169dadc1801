"""Manifest helpers."""

from typing import Any, Iterable, Optional


def get_name(manifest: dict[str, Any]) -> str:
    return manifest["metadata"]["name"]


def get_namespace(manifest: dict[str, Any]) -> Optional[str]:
    return manifest["metadata"].get("namespace")


def get_resource_version(manifest: dict[str, Any]) -> Optional[str]:
    return (manifest.get("metadata") or {}).get("resourceVersion")


def set_resource_version(manifest: dict[str, Any], resource_version: Optional[str]) -> None:
    manifest.setdefault("metadata", {})["resourceVersion"] = resource_version


def group_by_namespace(manifests: Iterable[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    """Group manifests by namespace, keeping first-seen order."""
    groups: dict[str, list[dict[str, Any]]] = {}
    for manifest in manifests:
        groups.setdefault(get_namespace(manifest), []).append(manifest)
    return groups
