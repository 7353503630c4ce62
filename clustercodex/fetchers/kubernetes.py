"""Kubernetes fetcher for events, object definitions and resource listings.

Everything goes through ``kubectl ... -o json`` so authentication is delegated
to the kubeconfig, exactly like running the commands by hand. Calls are
read-only. Each kubectl invocation runs in a worker thread so callers can
await many of them concurrently.
"""

import asyncio
import json
import subprocess
from typing import Any, Dict, List, Optional

import structlog

from clustercodex.fetchers.base import (
    BaseFetcher,
    ConnectionError,
    DataSourceNotFoundError,
    QueryError,
)
from clustercodex.utils import run_command

logger = structlog.get_logger(__name__)


def resource_ref(api_version: str, kind: str) -> str:
    """Build the kubectl resource argument for a kind.

    Core kinds are addressed by their lower-cased kind; grouped kinds are
    fully qualified so that name clashes across API groups resolve to the
    requested one.

    Example:
        >>> resource_ref("apps/v1", "Deployment")
        'deployment.v1.apps'
        >>> resource_ref("v1", "Pod")
        'pod'
    """
    kind = kind.lower()
    if "/" in api_version:
        group, version = api_version.split("/", 1)
        return f"{kind}.{version}.{group}"
    return kind


class KubernetesClient(BaseFetcher):
    """Read-only access to a cluster via kubectl.

    Config keys:
        context: kubeconfig context (optional)
        kubeconfig: path to a kubeconfig file (optional)
        timeout: seconds allowed for each kubectl call
    """

    DEFAULT_TIMEOUT = 30

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config or {})

    @property
    def timeout(self) -> float:
        return self.config.get("timeout") or self.DEFAULT_TIMEOUT

    def _base_command(self) -> List[str]:
        cmd = ["kubectl"]
        if self.config.get("kubeconfig"):
            cmd.extend(["--kubeconfig", self.config["kubeconfig"]])
        if self.config.get("context"):
            cmd.extend(["--context", self.config["context"]])
        return cmd

    def _run_json(self, args: List[str]) -> Dict[str, Any]:
        """Run kubectl with JSON output and parse the result.

        Raises:
            DataSourceNotFoundError: If the object does not exist
            ConnectionError: If kubectl is missing, fails or times out
            QueryError: If the output is not JSON
        """
        cmd = self._base_command() + args + ["-o", "json"]
        try:
            result = run_command(cmd, capture_output=True, text=True, check=True, timeout=self.timeout)
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            if "NotFound" in stderr or "not found" in stderr:
                raise DataSourceNotFoundError(f"kubectl: {stderr}") from e
            raise ConnectionError(f"kubectl command failed: {stderr}") from e
        except subprocess.TimeoutExpired as e:
            raise ConnectionError(f"kubectl command timed out after {self.timeout} seconds") from e
        except FileNotFoundError as e:
            raise ConnectionError(f"kubectl not found: {e}") from e

        try:
            return json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            raise QueryError(f"Failed to parse kubectl output: {e}") from e

    async def get_json(self, args: List[str]) -> Dict[str, Any]:
        """Run ``kubectl <args> -o json`` in a worker thread."""
        return await asyncio.to_thread(self._run_json, args)

    async def list_objects(
        self,
        resource: str,
        namespace: Optional[str] = None,
        field_selector: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """List objects of a resource type.

        Args:
            resource: kubectl resource argument (e.g. "events", "results.core.k8sgpt.ai")
            namespace: Namespace to list; None lists across all namespaces
            field_selector: Optional field selector

        Returns:
            The ``items`` of the returned list
        """
        args = ["get", resource]
        if namespace:
            args.extend(["--namespace", namespace])
        else:
            args.append("--all-namespaces")
        if field_selector:
            args.extend(["--field-selector", field_selector])
        raw = await self.get_json(args)
        items = raw.get("items") if isinstance(raw, dict) else None
        return items if isinstance(items, list) else []

    async def list_events(self, namespace: str, kind: str, name: str) -> List[Dict[str, Any]]:
        """List the events whose involved object is ``kind/name`` in a namespace."""
        selector = f"involvedObject.kind={kind},involvedObject.name={name}"
        return await self.list_objects("events", namespace=namespace, field_selector=selector)

    async def get_object(
        self, api_version: str, kind: str, namespace: str, name: str
    ) -> Dict[str, Any]:
        """Read one object's live definition.

        Raises:
            DataSourceNotFoundError: If the object does not exist
        """
        args = ["get", f"{resource_ref(api_version, kind)}/{name}"]
        if namespace:
            args.extend(["--namespace", namespace])
        return await self.get_json(args)

    async def list_resources(self, kind: str) -> List[Dict[str, Any]]:
        """List every object of a kind as compact rows for the resource browser."""
        items = await self.list_objects(kind)
        return [summarize_resource(kind, item) for item in items]


def summarize_resource(kind: str, item: Dict[str, Any]) -> Dict[str, Any]:
    """Reduce a raw object to the row shown by the resource browser.

    Every row carries ``type`` (the requested kind), ``name`` and ``namespace``
    (empty for cluster-scoped objects), which is what policy filtering reads.
    """
    metadata = item.get("metadata") or {}
    status = item.get("status") or {}
    spec = item.get("spec") or {}
    row: Dict[str, Any] = {
        "type": item.get("kind") or kind,
        "name": metadata.get("name", ""),
        "namespace": metadata.get("namespace", ""),
    }

    normalized = kind.lower().rstrip("s")
    if normalized == "pod":
        statuses = status.get("containerStatuses") or []
        waiting = [
            (s.get("state") or {}).get("waiting", {}).get("reason")
            for s in statuses
            if (s.get("state") or {}).get("waiting")
        ]
        row["status"] = next((reason for reason in waiting if reason), status.get("phase", ""))
        row["restarts"] = sum(s.get("restartCount", 0) for s in statuses)
        row["node"] = spec.get("nodeName", "")
    elif normalized in ("deployment", "statefulset", "replicaset"):
        replicas = spec.get("replicas", 0)
        row["ready"] = f"{status.get('readyReplicas', 0)}/{replicas}"
        row["updated"] = status.get("updatedReplicas", 0)
        row["available"] = status.get("availableReplicas", 0)
    elif normalized == "daemonset":
        row["ready"] = f"{status.get('numberReady', 0)}/{status.get('desiredNumberScheduled', 0)}"
    elif normalized == "node":
        conditions = {c.get("type"): c.get("status") for c in status.get("conditions") or []}
        row["status"] = "Ready" if conditions.get("Ready") == "True" else "NotReady"
        labels = metadata.get("labels") or {}
        roles = [key.split("/", 1)[1] for key in labels if key.startswith("node-role.kubernetes.io/")]
        row["roles"] = ",".join(roles) or "worker"
        row["version"] = (status.get("nodeInfo") or {}).get("kubeletVersion", "")
    elif normalized == "event":
        involved = item.get("involvedObject") or {}
        row["reason"] = item.get("reason", "")
        row["message"] = item.get("message", "")
        row["involvedObject"] = f"{involved.get('kind', '')}/{involved.get('name', '')}"
        row["lastTimestamp"] = item.get("lastTimestamp") or item.get("eventTime") or ""
        # Events are shown under the Event kind, not their own "type" field
        row["type"] = "Event"
        row["eventType"] = item.get("type", "")
    else:
        row["created"] = metadata.get("creationTimestamp", "")
    return row
