"""Issue data model."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

NO_EVENTS = "No events found."
NO_DEFINITION = "No definition found."


@dataclass(frozen=True)
class IssueContext:
    """Evidence attached to an issue.

    Attributes:
        kind: Kind of the affected object
        name: Name of the affected object
        error_text: Error reported by the diagnostic engine
        events_table: Tab-separated table of recent related events
        definition: Live object definition as YAML, or the not-found sentinel
    """

    kind: str
    name: str
    error_text: str = ""
    events_table: str = NO_EVENTS
    definition: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "kind": self.kind,
            "name": self.name,
            "errorText": self.error_text,
            "eventsTable": self.events_table,
        }
        if self.definition is not None:
            data["definition"] = self.definition
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IssueContext":
        return cls(
            kind=data.get("kind", ""),
            name=data.get("name", ""),
            error_text=data.get("errorText", ""),
            events_table=data.get("eventsTable", NO_EVENTS),
            definition=data.get("definition"),
        )


@dataclass(frozen=True)
class Issue:
    """A single detected cluster anomaly, normalized.

    Issues are created fresh on every aggregation pass and never mutated.
    ``kind`` and ``namespace`` are what access policies match against.
    """

    id: str
    title: str
    severity: str
    kind: str
    namespace: str
    name: str
    detected_at: str
    context: Optional[IssueContext] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "severity": self.severity,
            "kind": self.kind,
            "namespace": self.namespace,
            "name": self.name,
            "detectedAt": self.detected_at,
        }
        if self.context is not None:
            data["context"] = self.context.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Issue":
        context = data.get("context")
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            severity=data.get("severity", "unknown"),
            kind=data.get("kind", ""),
            namespace=data.get("namespace", ""),
            name=data.get("name", ""),
            detected_at=data.get("detectedAt", ""),
            context=IssueContext.from_dict(context) if context else None,
        )

    def context_snapshot(self) -> str:
        """Render the issue context as the editable snapshot shown to operators.

        The definition is indented by two spaces so it reads as a block under
        its heading; the not-found sentinel is kept as is.
        """
        if self.context is None:
            return ""
        definition = (self.context.definition or "").rstrip()
        if definition and definition != NO_DEFINITION:
            definition = "\n".join(f"  {line}" for line in definition.split("\n"))
        blocks = [
            f"Kind: {self.context.kind}",
            f"Name: {self.context.name}",
            f"Error: {self.context.error_text or 'N/A'}",
            "Events:",
            self.context.events_table or NO_EVENTS,
            "Definition:",
            definition or NO_DEFINITION,
        ]
        return "\n".join(blocks)
