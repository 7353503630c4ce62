"""Issue aggregator.

Fetches k8sgpt findings, normalizes them into :class:`Issue` records and
enriches each one with its recent events and live definition. Enrichment for
different findings runs concurrently; a failing lookup only degrades its own
finding to a sentinel value.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Tuple

import structlog
import yaml

from clustercodex.fetchers.k8sgpt import K8sGPTSource
from clustercodex.fetchers.kubernetes import KubernetesClient
from clustercodex.issues.fallback import fallback_issues
from clustercodex.issues.models import NO_DEFINITION, NO_EVENTS, Issue, IssueContext
from clustercodex.issues.records import FindingRef, parse_records

logger = structlog.get_logger(__name__)

EVENTS_HEADER = ["LAST SEEN", "TYPE", "REASON", "OBJECT", "MESSAGE"]
EVENT_TIME_FIELDS = ("lastTimestamp", "eventTime", "firstTimestamp")


def event_time(event: Mapping[str, Any]) -> str:
    """Best available timestamp of an event, as the raw string."""
    for key in EVENT_TIME_FIELDS:
        if event.get(key):
            return str(event[key])
    created = (event.get("metadata") or {}).get("creationTimestamp")
    return str(created) if created else ""


def _epoch(value: str) -> float:
    """Seconds since the epoch for an ISO-8601 string; 0 when unparsable."""
    if not value:
        return 0.0
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def build_events_table(events: List[Mapping[str, Any]]) -> str:
    """Render events newest first as a tab-separated table.

    Example:
        LAST SEEN<TAB>TYPE<TAB>REASON<TAB>OBJECT<TAB>MESSAGE
        2026-01-31T00:05:00Z<TAB>Warning<TAB>BackOff<TAB>Pod/api-7f9d5<TAB>Back-off restarting
    """
    if not events:
        return NO_EVENTS

    rows = []
    for event in events:
        time = event_time(event)
        involved = event.get("involvedObject") or {}
        kind, name = involved.get("kind") or "", involved.get("name") or ""
        rows.append(
            (
                _epoch(time),
                [
                    time,
                    event.get("type") or "",
                    event.get("reason") or "",
                    f"{kind}/{name}" if kind or name else "",
                    " ".join(str(event.get("message") or "").split()),
                ],
            )
        )

    rows.sort(key=lambda row: row[0], reverse=True)
    lines = ["\t".join(EVENTS_HEADER)] + ["\t".join(columns) for _, columns in rows]
    return "\n".join(lines)


def dump_definition(resource: Dict[str, Any]) -> str:
    """Serialize an object definition as YAML without server bookkeeping."""
    resource = dict(resource)
    metadata = dict(resource.get("metadata") or {})
    metadata.pop("managedFields", None)
    if metadata:
        resource["metadata"] = metadata
    return yaml.safe_dump(resource, sort_keys=False, default_flow_style=False)


class IssueAggregator:
    """Builds the current list of issues from the diagnostic source.

    Args:
        source: Diagnostic source listing raw k8sgpt records
        client: Cluster client used for events and definitions
    """

    def __init__(self, source: K8sGPTSource, client: KubernetesClient):
        self.source = source
        self.client = client

    async def list_issues(self) -> List[Issue]:
        """Fetch and normalize every finding.

        Raises:
            FetchError: If the diagnostic source cannot be read. Callers
                substitute the static fallback set (see load_issues_or_fallback).
        """
        records = await self.source.list_records()
        refs = parse_records(records, self.source.namespace)
        issues = await asyncio.gather(*(self._build_issue(ref) for ref in refs))
        logger.info("issues_aggregated", records=len(records), issues=len(issues))
        return list(issues)

    async def _build_issue(self, ref: FindingRef) -> Issue:
        events_table, definition = await asyncio.gather(
            self.fetch_events_table(ref.namespace, ref.kind, ref.name),
            self.fetch_definition(ref.api_version, ref.kind, ref.namespace, ref.name),
        )
        return Issue(
            id=ref.id,
            title=ref.kind,
            severity=ref.severity,
            kind=ref.kind,
            namespace=ref.namespace,
            name=ref.name,
            detected_at=ref.detected_at,
            context=IssueContext(
                kind=ref.kind,
                name=ref.name,
                error_text=ref.error_text,
                events_table=events_table,
                definition=definition,
            ),
        )

    async def fetch_events_table(self, namespace: str, kind: str, name: str) -> str:
        """Events table for one object; the sentinel on any failure."""
        if not namespace or not kind or not name:
            return NO_EVENTS
        try:
            events = await self.client.list_events(namespace, kind, name)
        except Exception as e:
            logger.warning("events_lookup_failed", namespace=namespace, kind=kind, name=name, error=str(e))
            return NO_EVENTS
        return build_events_table(events)

    async def fetch_definition(self, api_version: str, kind: str, namespace: str, name: str) -> str:
        """Live definition as YAML; the sentinel on any failure."""
        if not api_version or not kind or not name:
            return NO_DEFINITION
        try:
            resource = await self.client.get_object(api_version, kind, namespace, name)
            return dump_definition(resource)
        except Exception as e:
            logger.debug("definition_lookup_failed", kind=kind, namespace=namespace, name=name, error=str(e))
            return NO_DEFINITION


async def load_issues_or_fallback(aggregator: IssueAggregator) -> Tuple[List[Issue], bool]:
    """List issues, substituting the static set when the cluster is unreachable.

    Returns:
        (issues, degraded) where degraded is True when the fallback was used
    """
    try:
        return await aggregator.list_issues(), False
    except Exception as e:
        logger.warning("issue_source_unavailable_using_fallback", error=str(e))
        return fallback_issues(), True
