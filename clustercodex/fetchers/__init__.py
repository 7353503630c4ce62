"""Read-only collaborators: cluster objects and the k8sgpt diagnostic source."""

from clustercodex.fetchers.base import (
    BaseFetcher,
    ConnectionError,
    DataSourceNotFoundError,
    FetchError,
    QueryError,
)
from clustercodex.fetchers.k8sgpt import K8sGPTSource
from clustercodex.fetchers.kubernetes import KubernetesClient

__all__ = [
    "BaseFetcher",
    "ConnectionError",
    "DataSourceNotFoundError",
    "FetchError",
    "QueryError",
    "K8sGPTSource",
    "KubernetesClient",
]
