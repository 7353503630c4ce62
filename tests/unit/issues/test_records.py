"""Unit tests for the k8sgpt record parser."""

import pytest

from clustercodex.issues.records import (
    infer_api_version,
    normalize_severity,
    parse_namespaced_name,
    parse_record,
    parse_records,
)

NOW = "2026-02-01T00:00:00+00:00"


class TestHelpers:
    """Test the small parsing helpers."""

    @pytest.mark.parametrize(
        "kind, expected",
        [
            ("Pod", "v1"),
            ("Deployment", "apps/v1"),
            ("CronJob", "batch/v1"),
            ("Ingress", "networking.k8s.io/v1"),
            ("CustomResourceDefinition", "apiextensions.k8s.io/v1"),
            ("Widget", ""),
        ],
    )
    def test_infer_api_version(self, kind, expected):
        assert infer_api_version(kind) == expected

    def test_namespaced_name(self):
        assert parse_namespaced_name("prod/api", "default") == ("prod", "api")

    def test_bare_name_takes_fallback(self):
        assert parse_namespaced_name("api", "default") == ("default", "api")

    def test_only_first_slash_splits(self):
        assert parse_namespaced_name("prod/api/extra", "default") == ("prod", "api/extra")

    def test_missing_name(self):
        assert parse_namespaced_name(None, "default") == ("default", "unknown")

    def test_severity(self):
        assert normalize_severity("HIGH") == "high"
        assert normalize_severity(None) == "unknown"
        assert normalize_severity(7) == "7"


class TestParseRecord:
    """Test both record variants."""

    def test_result_variant(self):
        item = {
            "metadata": {"name": "podapi", "namespace": "k8sgpt", "creationTimestamp": "2026-01-31T00:00:00Z"},
            "spec": {"kind": "Pod"},
            "status": {
                "results": [
                    {"name": "default/api-7f9d5", "severity": "High", "error": [{"text": "back-off restarting"}]},
                    {"kind": "Deployment", "name": "api", "version": "apps/v1"},
                ]
            },
        }
        first, second = parse_record(item, "fallback-ns", now=NOW)

        assert first.variant == "result"
        assert first.id == "podapi-0"
        assert (first.kind, first.namespace, first.name) == ("Pod", "default", "api-7f9d5")
        assert first.api_version == "v1"
        assert first.severity == "high"
        assert first.error_text == "back-off restarting"
        assert first.detected_at == "2026-01-31T00:00:00Z"

        assert second.id == "podapi-1"
        assert second.kind == "Deployment"
        assert second.api_version == "apps/v1"
        # bare name falls back to the record namespace
        assert second.namespace == "k8sgpt"
        assert second.severity == "unknown"

    def test_record_variant(self):
        item = {
            "metadata": {"name": "deploymentapi", "namespace": "k8sgpt"},
            "spec": {
                "kind": "Deployment",
                "name": "shop/checkout",
                "error": [{"text": "0/2 replicas available"}],
                "backend": "openai",
            },
            "status": {"severity": "Medium"},
        }
        (ref,) = parse_record(item, "fallback-ns", now=NOW)

        assert ref.variant == "record"
        assert ref.id == "deploymentapi"
        assert (ref.kind, ref.namespace, ref.name) == ("Deployment", "shop", "checkout")
        assert ref.api_version == "apps/v1"
        assert ref.severity == "medium"
        assert ref.error_text == "0/2 replicas available"
        assert ref.detected_at == NOW

    def test_empty_results_is_record_variant(self):
        (ref,) = parse_record({"metadata": {"name": "r"}, "status": {"results": []}}, "diag", now=NOW)
        assert ref.variant == "record"
        assert ref.kind == "Unknown"
        assert ref.namespace == "diag"
        assert ref.name == "r"

    def test_error_as_object(self):
        (ref,) = parse_record({"metadata": {"name": "r"}, "spec": {"kind": "Pod", "error": {"text": "boom"}}}, "d", now=NOW)
        assert ref.error_text == "boom"

    def test_missing_everything(self):
        (ref,) = parse_record({}, "diag", now=NOW)
        assert ref.id == "result"
        assert ref.name == "unknown"
        assert ref.api_version == ""


class TestParseRecords:
    """Test id de-duplication across a pass."""

    def test_duplicate_ids_get_suffix(self):
        items = [{"spec": {"kind": "Pod"}}, {"spec": {"kind": "Pod"}}, {"spec": {"kind": "Pod"}}]
        refs = parse_records(items, "diag", now=NOW)
        assert [r.id for r in refs] == ["result", "result-2", "result-3"]

    def test_non_mapping_items_skipped(self):
        refs = parse_records([None, "x", {"metadata": {"name": "a"}}], "diag", now=NOW)
        assert [r.id for r in refs] == ["a"]
