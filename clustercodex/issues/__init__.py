"""Issue aggregation: raw k8sgpt records in, normalized issues out."""

from clustercodex.issues.aggregator import IssueAggregator, build_events_table, load_issues_or_fallback
from clustercodex.issues.fallback import fallback_issues
from clustercodex.issues.models import NO_DEFINITION, NO_EVENTS, Issue, IssueContext
from clustercodex.issues.records import FindingRef, parse_record, parse_records

__all__ = [
    "IssueAggregator",
    "build_events_table",
    "load_issues_or_fallback",
    "fallback_issues",
    "NO_DEFINITION",
    "NO_EVENTS",
    "Issue",
    "IssueContext",
    "FindingRef",
    "parse_record",
    "parse_records",
]
