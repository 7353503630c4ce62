"""Prompt construction for remediation plans.

The prompt is a fixed sequence of plain-text sections joined by blank lines:
instructions, guardrails, the caller's access policy, the redacted issue
context and, only when present, the caller's additional context. Every
free-text field is redacted independently before it is placed in the prompt.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union

from clustercodex.enums import PlanSchema
from clustercodex.issues.models import Issue
from clustercodex.plans.schema import SCHEMA_FIELDS
from clustercodex.policy import AccessPolicy
from clustercodex.redaction import redact_many

GUARDRAILS = [
    "Guardrails:",
    "- Allowed: read-only checks, rollout restart suggestion, config diff suggestions.",
    "- Disallowed: delete, scale to zero, change PVC, change network policy.",
    "- Each step must include impact + validation.",
]


@dataclass
class PlanRequest:
    """Input to a single plan generation.

    Attributes:
        issue: The issue to remediate, with its context snapshot
        user_context: Free text added by the operator
        allow_list: The caller's resolved access policy
    """

    issue: Issue
    user_context: str = ""
    allow_list: AccessPolicy = field(default_factory=AccessPolicy.empty)


def instructions_block(schema: PlanSchema) -> str:
    lines = [
        "You are a Kubernetes incident assistant.",
        f"Return JSON only in the {schema.value} schema.",
        f"{schema.value} schema fields: {SCHEMA_FIELDS[schema]}.",
    ]
    if schema != PlanSchema.LONG_TERM:
        lines.append("Step impact must be none, low, medium, or high.")
    if schema == PlanSchema.LONG_TERM:
        lines.append("RiskLevel must be low, medium, or high.")
    return "\n".join(lines)


def guardrails_block() -> str:
    return "\n".join(GUARDRAILS)


def policy_block(policy: AccessPolicy) -> str:
    return "\n".join(
        [
            "AccessPolicy:",
            f"Namespaces: {', '.join(policy.namespace_allow_list) or 'none'}",
            f"Kinds: {', '.join(policy.kind_allow_list) or 'none'}",
        ]
    )


def context_block(issue: Issue, error_text: str, events_table: str, definition: str) -> str:
    return "\n".join(
        [
            f"Issue: {issue.title}",
            f"Severity: {issue.severity}",
            f"Kind: {issue.kind}",
            f"Namespace: {issue.namespace}",
            f"Name: {issue.name}",
            f"DetectedAt: {issue.detected_at}",
            "",
            "Context:",
            f"Error: {error_text or 'N/A'}",
            "Events:",
            events_table or "No events provided.",
            "Definition:",
            definition or "No definition provided.",
        ]
    )


def build_prompt(
    request: PlanRequest, schema: Union[PlanSchema, str] = PlanSchema.COMBINED
) -> Tuple[str, Dict[str, Any]]:
    """Build the redacted prompt and its loggable metadata.

    Returns:
        (prompt, meta) where meta holds issue_id, issue_title, namespace,
        kind, has_user_context and redaction_count. The prompt text itself
        must never be logged.
    """
    schema = PlanSchema(schema)
    issue = request.issue
    context = issue.context

    (user, error, events, definition), redaction_count = redact_many(
        request.user_context,
        context.error_text if context else "",
        context.events_table if context else "",
        context.definition if context else "",
    )

    sections: List[str] = [
        instructions_block(schema),
        guardrails_block(),
        policy_block(request.allow_list),
        context_block(issue, error, events, definition),
    ]
    if user.strip():
        sections.append("AdditionalUserContext:\n" + user)

    meta = {
        "issue_id": issue.id,
        "issue_title": issue.title,
        "namespace": issue.namespace,
        "kind": issue.kind,
        "has_user_context": bool((request.user_context or "").strip()),
        "redaction_count": redaction_count,
    }
    return "\n\n".join(sections), meta


def merge_user_context(snapshot: str, user_context: str) -> str:
    """Combine the issue's context snapshot with the operator's own notes.

    Blank parts are dropped; the rest are joined by a blank line, snapshot
    first.
    """
    return "\n\n".join(part.strip() for part in (snapshot, user_context) if part and part.strip())
