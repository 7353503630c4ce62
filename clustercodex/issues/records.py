"""Parser for raw k8sgpt finding records.

A record comes in one of two shapes:

* ``result`` variant: ``status.results`` holds one or more entries, each of
  which becomes its own finding (id ``<record-name>-<index>``);
* ``record`` variant: no entries, the record as a whole is one finding
  (id ``<record-name>``).

Field names vary between operator versions, so every semantic value is
probed from an ordered list of candidate locations. All of that probing lives
here; the rest of the package only sees :class:`FindingRef`.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Mapping, Optional, Set, Tuple

CORE_KINDS = {
    "pod",
    "service",
    "configmap",
    "secret",
    "namespace",
    "node",
    "serviceaccount",
    "persistentvolume",
    "persistentvolumeclaim",
    "event",
}
APPS_KINDS = {"deployment", "replicaset", "statefulset", "daemonset"}
BATCH_KINDS = {"job", "cronjob"}

UNKNOWN_KIND = "Unknown"
UNKNOWN_NAME = "unknown"
UNKNOWN_SEVERITY = "unknown"


@dataclass(frozen=True)
class FindingRef:
    """One finding extracted from a raw record, before enrichment."""

    variant: Literal["result", "record"]
    id: str
    kind: str
    api_version: str
    name: str
    namespace: str
    severity: str
    error_text: str
    detected_at: str


def infer_api_version(kind: str) -> str:
    """Infer the API version of a well-known kind.

    Example:
        >>> infer_api_version("Deployment")
        'apps/v1'
        >>> infer_api_version("Widget")
        ''
    """
    normalized = (kind or "").lower()
    if normalized in CORE_KINDS:
        return "v1"
    if normalized in APPS_KINDS:
        return "apps/v1"
    if normalized in BATCH_KINDS:
        return "batch/v1"
    if normalized == "ingress":
        return "networking.k8s.io/v1"
    if normalized in ("customresourcedefinition", "crd"):
        return "apiextensions.k8s.io/v1"
    return ""


def parse_namespaced_name(raw_name: Optional[str], fallback_namespace: str) -> Tuple[str, str]:
    """Split ``"namespace/name"`` on its first slash.

    A bare name takes the fallback namespace; a missing name becomes
    ``"unknown"``.

    Returns:
        (namespace, name)
    """
    if not raw_name:
        return fallback_namespace, UNKNOWN_NAME
    if "/" in raw_name:
        namespace, name = raw_name.split("/", 1)
        return namespace, name
    return fallback_namespace, raw_name


def normalize_severity(value: Any) -> str:
    if value is None or value == "":
        return UNKNOWN_SEVERITY
    return str(value).lower()


def _first(*values: Any) -> Any:
    """Return the first truthy value, or None."""
    for value in values:
        if value:
            return value
    return None


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _error_text(source: Mapping[str, Any]) -> str:
    """Read ``error`` as either a list of ``{text}`` or a single ``{text}``."""
    error = source.get("error")
    if isinstance(error, list):
        error = error[0] if error else None
    if isinstance(error, Mapping):
        text = error.get("text")
        return text if isinstance(text, str) else ""
    return ""


def _api_version(*sources: Mapping[str, Any]) -> str:
    for key in ("apiVersion", "version"):
        for source in sources:
            value = source.get(key)
            if isinstance(value, str) and value:
                return value
    return ""


def parse_record(
    item: Mapping[str, Any], default_namespace: str, now: Optional[str] = None
) -> List[FindingRef]:
    """Turn one raw record into its findings.

    Args:
        item: Raw record as returned by the diagnostic source
        default_namespace: Namespace used when neither the finding nor the
            record names one
        now: Timestamp used when the record has no creation timestamp

    Returns:
        One FindingRef per result entry, or a single one for the whole record
    """
    metadata = _mapping(item.get("metadata"))
    spec = _mapping(item.get("spec"))
    status = _mapping(item.get("status"))
    record_name = metadata.get("name") or "result"
    detected_at = metadata.get("creationTimestamp") or now or datetime.now(timezone.utc).isoformat()

    results = status.get("results")
    entries = [_mapping(entry) for entry in results] if isinstance(results, list) else []

    if entries:
        refs = []
        for index, entry in enumerate(entries):
            kind = _first(entry.get("kind"), spec.get("kind")) or UNKNOWN_KIND
            fallback_namespace = _first(
                entry.get("namespace"), spec.get("namespace"), metadata.get("namespace")
            ) or default_namespace
            namespace, name = parse_namespaced_name(
                _first(entry.get("name"), spec.get("name"), metadata.get("name")), fallback_namespace
            )
            refs.append(
                FindingRef(
                    variant="result",
                    id=f"{record_name}-{index}",
                    kind=kind,
                    api_version=_api_version(entry, spec, status) or infer_api_version(kind),
                    name=name,
                    namespace=namespace,
                    severity=normalize_severity(
                        _first(entry.get("severity"), entry.get("severityScore"), entry.get("level"))
                    ),
                    error_text=_error_text(entry) or _error_text(spec) or _error_text(status),
                    detected_at=detected_at,
                )
            )
        return refs

    kind = _first(spec.get("kind"), status.get("kind")) or UNKNOWN_KIND
    fallback_namespace = _first(spec.get("namespace"), metadata.get("namespace")) or default_namespace
    namespace, name = parse_namespaced_name(_first(spec.get("name"), metadata.get("name")), fallback_namespace)
    return [
        FindingRef(
            variant="record",
            id=record_name,
            kind=kind,
            api_version=_api_version(spec, status) or infer_api_version(kind),
            name=name,
            namespace=namespace,
            severity=normalize_severity(_first(status.get("severity"), spec.get("severity"))),
            error_text=_error_text(spec) or _error_text(status),
            detected_at=detected_at,
        )
    ]


def parse_records(
    items: List[Dict[str, Any]], default_namespace: str, now: Optional[str] = None
) -> List[FindingRef]:
    """Parse every record, making ids unique within the pass.

    A repeated id gets a ``-<n>`` suffix (``result``, ``result-2``, ...).
    """
    refs: List[FindingRef] = []
    used: Set[str] = set()
    for item in items:
        if not isinstance(item, Mapping):
            continue
        for ref in parse_record(item, default_namespace, now=now):
            unique_id, suffix = ref.id, 1
            while unique_id in used:
                suffix += 1
                unique_id = f"{ref.id}-{suffix}"
            used.add(unique_id)
            refs.append(replace(ref, id=unique_id) if unique_id != ref.id else ref)
    return refs
