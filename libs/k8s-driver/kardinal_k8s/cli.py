"""
Command line entry point.

Usage:
    kardinal-k8s apply -f bundle.yaml
    kardinal-k8s cleanup -f bundle.yaml
    kardinal-k8s add-rule -n NAMESPACE --virtual-service NAME -f rule.yaml
    kardinal-k8s add-subset -n NAMESPACE --destination-rule NAME -f subset.yaml
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Optional

import yaml
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .cluster import ClusterConnection
from .config import get_settings
from .exceptions import ReconcileError, ResourceConflictError
from .manager import ClusterResourceManager
from .models import ClusterResources

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_RECONCILE_ERROR = 1
EXIT_INVALID_INPUT = 2


def load_documents(path: str) -> list[Any]:
    """Read all YAML/JSON documents from a file, skipping empty ones."""
    with Path(path).open(encoding="utf-8") as f:
        return [doc for doc in yaml.safe_load_all(f) if doc is not None]


def load_bundle(path: str) -> ClusterResources:
    """
    Load a bundle file.

    The file is either a single mapping shaped like ClusterResources, or a
    stream of manifests (multi-document YAML, a list, or a kind: List).

    Raises:
        ValueError: If the file does not describe a valid bundle
    """
    documents = load_documents(path)
    if len(documents) == 1 and isinstance(documents[0], dict) and "kind" not in documents[0]:
        return ClusterResources.model_validate(documents[0])

    manifests: list[dict[str, Any]] = []
    for document in documents:
        if isinstance(document, list):
            manifests.extend(document)
        elif isinstance(document, dict) and document.get("kind") == "List":
            manifests.extend(document.get("items") or [])
        elif isinstance(document, dict):
            manifests.append(document)
        else:
            raise ValueError(f"Unexpected document in {path}: {document!r}")
    return ClusterResources.from_manifests(manifests)


def load_object(path: str) -> dict[str, Any]:
    """Load a single mapping (routing rule or subset)."""
    documents = load_documents(path)
    if len(documents) != 1 or not isinstance(documents[0], dict):
        raise ValueError(f"{path} must contain exactly one mapping")
    return documents[0]


def run_with_conflict_retry(func: Callable[[], Any], attempts: int) -> Any:
    """Run a whole reconciliation call again while it hits version conflicts."""
    retryer = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(ResourceConflictError),
        before_sleep=lambda state: logger.warning(
            f"Version conflict, retrying (attempt {state.attempt_number}/{attempts})"
        ),
        reraise=True,
    )
    return retryer(func)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kardinal-k8s",
        description="Reconcile Kubernetes and Istio resources against a desired bundle",
    )
    parser.add_argument("--kubeconfig", help="Path to kubeconfig (default: in-cluster, then ~/.kube/config)")
    parser.add_argument("--context", help="Kubeconfig context to use")
    parser.add_argument("--retries", type=int, help="Attempts on version conflicts")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    apply_parser = subparsers.add_parser("apply", help="Create or update every resource of a bundle")
    apply_parser.add_argument("-f", "--filename", required=True, help="Bundle file")

    cleanup_parser = subparsers.add_parser("cleanup", help="Delete live resources missing from a bundle")
    cleanup_parser.add_argument("-f", "--filename", required=True, help="Bundle file")

    rule_parser = subparsers.add_parser("add-rule", help="Prepend an HTTP route to a VirtualService")
    rule_parser.add_argument("-n", "--namespace", required=True)
    rule_parser.add_argument("--virtual-service", required=True)
    rule_parser.add_argument("-f", "--filename", required=True, help="HTTPRoute file")

    subset_parser = subparsers.add_parser("add-subset", help="Insert or replace a DestinationRule subset")
    subset_parser.add_argument("-n", "--namespace", required=True)
    subset_parser.add_argument("--destination-rule", required=True)
    subset_parser.add_argument("-f", "--filename", required=True, help="Subset file")

    return parser


def _build_call(args: argparse.Namespace, manager: ClusterResourceManager, payload: Any) -> Callable[[], Any]:
    if args.command == "apply":
        return lambda: manager.apply_cluster_resources(payload)
    if args.command == "cleanup":
        return lambda: manager.clean_up_cluster_resources(payload)
    if args.command == "add-rule":
        return lambda: manager.add_routing_rule(args.namespace, args.virtual_service, payload)
    return lambda: manager.add_subset(args.namespace, args.destination_rule, payload)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        if args.command in ("apply", "cleanup"):
            payload = load_bundle(args.filename)
        else:
            payload = load_object(args.filename)
    except (OSError, yaml.YAMLError, ValueError) as e:
        logger.error(f"Invalid input {args.filename}: {e}")
        return EXIT_INVALID_INPUT

    cluster_config = settings.cluster_config()
    if args.kubeconfig:
        cluster_config.kubeconfig_path = args.kubeconfig
    if args.context:
        cluster_config.context = args.context

    try:
        connection = ClusterConnection(cluster_config)
    except ValueError as e:
        logger.error(str(e))
        return EXIT_RECONCILE_ERROR

    attempts = args.retries or settings.conflict_retries
    with connection:
        manager = ClusterResourceManager.from_connection(connection, settings.reconcile_options())
        try:
            run_with_conflict_retry(_build_call(args, manager, payload), attempts)
        except ReconcileError as e:
            logger.error(f"{args.command} failed: {e}")
            return EXIT_RECONCILE_ERROR
        except ValueError as e:
            logger.error(f"Invalid input {args.filename}: {e}")
            return EXIT_INVALID_INPUT

    logger.info(f"{args.command} completed")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
