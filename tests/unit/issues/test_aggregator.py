"""Unit tests for the issue aggregator."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
import yaml

from clustercodex.fetchers.base import ConnectionError, DataSourceNotFoundError
from clustercodex.issues.aggregator import (
    IssueAggregator,
    build_events_table,
    dump_definition,
    load_issues_or_fallback,
)
from clustercodex.issues.fallback import fallback_issues
from clustercodex.issues.models import NO_DEFINITION, NO_EVENTS, Issue, IssueContext

RECORD = {
    "metadata": {"name": "podapi", "namespace": "k8sgpt", "creationTimestamp": "2026-01-31T00:00:00Z"},
    "spec": {"kind": "Pod"},
    "status": {"results": [{"name": "default/api-7f9d5", "error": [{"text": "back-off"}]}]},
}


@pytest.fixture
def source():
    source = MagicMock()
    source.namespace = "k8sgpt"
    source.list_records = AsyncMock(return_value=[RECORD])
    return source


@pytest.fixture
def client():
    client = MagicMock()
    client.list_events = AsyncMock(
        return_value=[
            {
                "type": "Warning",
                "reason": "BackOff",
                "message": "Back-off\n  restarting",
                "involvedObject": {"kind": "Pod", "name": "api-7f9d5"},
                "lastTimestamp": "2026-01-31T00:00:00Z",
            }
        ]
    )
    client.get_object = AsyncMock(
        return_value={"apiVersion": "v1", "kind": "Pod", "metadata": {"name": "api-7f9d5", "managedFields": [{}]}}
    )
    return client


class TestBuildEventsTable:
    """Test the events table rendering."""

    def test_sorted_newest_first(self):
        events = [
            {"type": "Normal", "reason": "Pulled", "message": "ok", "lastTimestamp": "2026-01-31T00:00:00Z",
             "involvedObject": {"kind": "Pod", "name": "a"}},
            {"type": "Warning", "reason": "BackOff", "message": "bad", "eventTime": "2026-01-31T00:05:00Z",
             "involvedObject": {"kind": "Pod", "name": "a"}},
        ]
        lines = build_events_table(events).split("\n")
        assert lines[0] == "LAST SEEN\tTYPE\tREASON\tOBJECT\tMESSAGE"
        assert lines[1] == "2026-01-31T00:05:00Z\tWarning\tBackOff\tPod/a\tbad"
        assert lines[2] == "2026-01-31T00:00:00Z\tNormal\tPulled\tPod/a\tok"

    def test_missing_fields(self):
        lines = build_events_table([{"message": "x"}]).split("\n")
        assert lines[1] == "\t\t\t\tx"

    def test_empty(self):
        assert build_events_table([]) == NO_EVENTS


class TestDumpDefinition:
    def test_managed_fields_removed(self):
        text = dump_definition({"kind": "Pod", "metadata": {"name": "a", "managedFields": [{"manager": "kubectl"}]}})
        assert "managedFields" not in text
        assert yaml.safe_load(text) == {"kind": "Pod", "metadata": {"name": "a"}}


class TestIssueAggregator:
    """Test aggregation and enrichment."""

    @pytest.mark.asyncio
    async def test_list_issues(self, source, client):
        issues = await IssueAggregator(source, client).list_issues()

        assert len(issues) == 1
        issue = issues[0]
        assert issue.id == "podapi-0"
        assert issue.title == "Pod"
        assert (issue.kind, issue.namespace, issue.name) == ("Pod", "default", "api-7f9d5")
        assert issue.context.error_text == "back-off"
        assert "Back-off restarting" in issue.context.events_table
        assert "managedFields" not in issue.context.definition
        client.list_events.assert_awaited_once_with("default", "Pod", "api-7f9d5")
        client.get_object.assert_awaited_once_with("v1", "Pod", "default", "api-7f9d5")

    @pytest.mark.asyncio
    async def test_enrichment_failures_use_sentinels(self, source, client):
        client.list_events.side_effect = ConnectionError("down")
        client.get_object.side_effect = DataSourceNotFoundError("gone")

        (issue,) = await IssueAggregator(source, client).list_issues()

        assert issue.context.events_table == NO_EVENTS
        assert issue.context.definition == NO_DEFINITION

    @pytest.mark.asyncio
    async def test_failure_is_isolated_per_finding(self, source, client):
        second = dict(RECORD, metadata={"name": "podworker"})
        second["status"] = {"results": [{"name": "default/worker"}]}
        source.list_records.return_value = [RECORD, second]

        async def get_object(api_version, kind, namespace, name):
            if name == "worker":
                raise ConnectionError("down")
            return {"kind": "Pod", "metadata": {"name": name}}

        client.get_object.side_effect = get_object
        issues = await IssueAggregator(source, client).list_issues()

        assert issues[0].context.definition != NO_DEFINITION
        assert issues[1].context.definition == NO_DEFINITION

    @pytest.mark.asyncio
    async def test_findings_are_enriched_concurrently(self, source, client):
        """Test a slow lookup for one finding does not hold up the next one."""
        second = dict(RECORD, metadata={"name": "podworker"})
        second["status"] = {"results": [{"name": "default/worker"}]}
        source.list_records.return_value = [RECORD, second]
        worker_looked_up = asyncio.Event()

        async def get_object(api_version, kind, namespace, name):
            if name == "worker":
                worker_looked_up.set()
            else:
                await worker_looked_up.wait()
            return {"kind": "Pod", "metadata": {"name": name}}

        client.get_object.side_effect = get_object
        issues = await asyncio.wait_for(IssueAggregator(source, client).list_issues(), timeout=2)

        assert [issue.name for issue in issues] == ["api-7f9d5", "worker"]
        assert "name: api-7f9d5" in issues[0].context.definition

    @pytest.mark.asyncio
    async def test_unknown_kind_has_no_definition(self, source, client):
        source.list_records.return_value = [{"metadata": {"name": "w"}, "spec": {"kind": "Widget", "name": "x"}}]
        (issue,) = await IssueAggregator(source, client).list_issues()
        assert issue.context.definition == NO_DEFINITION
        client.get_object.assert_not_called()

    @pytest.mark.asyncio
    async def test_source_failure_propagates(self, source, client):
        source.list_records.side_effect = ConnectionError("down")
        with pytest.raises(ConnectionError):
            await IssueAggregator(source, client).list_issues()

    @pytest.mark.asyncio
    async def test_load_issues_or_fallback(self, source, client):
        source.list_records.side_effect = ConnectionError("down")
        issues, degraded = await load_issues_or_fallback(IssueAggregator(source, client))
        assert degraded is True
        assert [i.id for i in issues] == ["k8sgpt:crashloop-1", "k8sgpt:imagepull-1", "k8sgpt:oom-1"]

    @pytest.mark.asyncio
    async def test_load_issues_live(self, source, client):
        issues, degraded = await load_issues_or_fallback(IssueAggregator(source, client))
        assert degraded is False
        assert issues[0].id == "podapi-0"


class TestIssueModel:
    """Test the issue model and its snapshot."""

    def test_fallback_issues_are_fresh(self):
        first, second = fallback_issues(), fallback_issues()
        assert first == second
        assert first is not second

    def test_round_trip(self):
        issue = fallback_issues()[0]
        assert Issue.from_dict(issue.to_dict()) == issue
        assert issue.to_dict()["detectedAt"] == "2026-01-31T00:00:00Z"

    def test_context_snapshot(self):
        issue = Issue(
            id="a", title="OOMKilled", severity="high", kind="Pod", namespace="default", name="p",
            detected_at="2026-01-31T00:00:00Z",
            context=IssueContext(kind="Pod", name="p", error_text="", definition="kind: Pod\nmetadata:\n  name: p\n"),
        )
        assert issue.context_snapshot() == (
            "Kind: Pod\nName: p\nError: N/A\nEvents:\nNo events found.\nDefinition:\n"
            "  kind: Pod\n  metadata:\n    name: p"
        )

    def test_context_snapshot_sentinel_not_indented(self):
        issue = Issue(
            id="a", title="t", severity="low", kind="Pod", namespace="d", name="p", detected_at="",
            context=IssueContext(kind="Pod", name="p", definition=NO_DEFINITION),
        )
        assert issue.context_snapshot().endswith("Definition:\nNo definition found.")
