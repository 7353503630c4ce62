"""Diagnostic source: k8sgpt ``Result`` custom resources."""

from typing import Any, Dict, List, Optional

import structlog

from clustercodex.fetchers.base import BaseFetcher
from clustercodex.fetchers.kubernetes import KubernetesClient

logger = structlog.get_logger(__name__)

GROUP = "core.k8sgpt.ai"
VERSION = "v1alpha1"
PLURAL = "results"


class K8sGPTSource(BaseFetcher):
    """Lists the raw finding records written by the k8sgpt operator.

    Config keys:
        namespace: namespace the operator writes results to
    """

    DEFAULT_NAMESPACE = "k8sgpt-operator-system"

    def __init__(self, client: KubernetesClient, config: Optional[Dict[str, Any]] = None):
        super().__init__(config or {})
        self.client = client

    @property
    def namespace(self) -> str:
        return self.config.get("namespace") or self.DEFAULT_NAMESPACE

    async def list_records(self) -> List[Dict[str, Any]]:
        """Fetch the raw records.

        Raises:
            FetchError: If the cluster cannot be reached or the CRD is missing
        """
        items = await self.client.list_objects(f"{PLURAL}.{VERSION}.{GROUP}", namespace=self.namespace)
        records = [item for item in items if isinstance(item, dict)]
        logger.debug("k8sgpt_records_listed", namespace=self.namespace, count=len(records))
        return records
