"""Static issues served when the diagnostic source cannot be reached."""

from typing import List

from clustercodex.issues.models import Issue, IssueContext

EVENTS_HEADER_LINE = "LAST SEEN\tTYPE\tREASON\tOBJECT\tMESSAGE\n"
DETECTED_AT = "2026-01-31T00:00:00Z"


def _pod_definition(name: str, container: str, image: str, extra: str, phase: str) -> str:
    return (
        "apiVersion: v1\n"
        "kind: Pod\n"
        "metadata:\n"
        f"  name: {name}\n"
        "  namespace: default\n"
        "spec:\n"
        "  containers:\n"
        f"    - name: {container}\n"
        f"      image: {image}\n"
        f"{extra}"
        "status:\n"
        f"  phase: {phase}\n"
    )


def fallback_issues() -> List[Issue]:
    """Return a fresh copy of the static issue set."""
    return [
        Issue(
            id="k8sgpt:crashloop-1",
            title="CrashLoopBackOff",
            severity="high",
            kind="Pod",
            namespace="default",
            name="api-7f9d5",
            detected_at=DETECTED_AT,
            context=IssueContext(
                kind="Pod",
                name="api-7f9d5",
                error_text="Container exited with code 1.",
                events_table=EVENTS_HEADER_LINE
                + "2026-01-31T00:00:00Z\tWarning\tBackOff\tPod/api-7f9d5\tBack-off restarting failed container",
                definition=_pod_definition(
                    "api-7f9d5", "api", "ghcr.io/acme/api:1.2.3",
                    "      args:\n        - start\n", "Running",
                ),
            ),
        ),
        Issue(
            id="k8sgpt:imagepull-1",
            title="ImagePullBackOff",
            severity="medium",
            kind="Pod",
            namespace="default",
            name="worker-5c9b2",
            detected_at=DETECTED_AT,
            context=IssueContext(
                kind="Pod",
                name="worker-5c9b2",
                error_text="Failed to pull image from registry (404).",
                events_table=EVENTS_HEADER_LINE
                + "2026-01-31T00:05:00Z\tWarning\tFailed\tPod/worker-5c9b2\tFailed to pull image",
                definition=_pod_definition(
                    "worker-5c9b2", "worker", "ghcr.io/acme/worker:2.0.1",
                    "      env:\n        - name: QUEUE\n          value: default\n", "Pending",
                ),
            ),
        ),
        Issue(
            id="k8sgpt:oom-1",
            title="OOMKilled",
            severity="high",
            kind="Pod",
            namespace="default",
            name="processor-6d7a1",
            detected_at=DETECTED_AT,
            context=IssueContext(
                kind="Pod",
                name="processor-6d7a1",
                error_text="Container exceeded memory limit and was terminated.",
                events_table=EVENTS_HEADER_LINE
                + "2026-01-31T00:02:00Z\tWarning\tOOMKilled\tPod/processor-6d7a1\tContainer killed due to OOM",
                definition=_pod_definition(
                    "processor-6d7a1", "processor", "ghcr.io/acme/processor:4.5.0",
                    "      resources:\n        limits:\n          memory: 256Mi\n", "Running",
                ),
            ),
        ),
    ]
