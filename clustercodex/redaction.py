"""Redaction of sensitive substrings before text leaves the process.

Every text field forwarded to the assistant goes through :func:`redact`.
Four pattern classes are applied in a fixed order, each match replaced with
a fixed label:

1. API-key-shaped tokens (``sk-``, ``rk-``, ``pk-``, ``tok-``, ``key-`` + 8 or
   more of ``[A-Za-z0-9_-]``) -> ``[REDACTED_KEY]``
2. AWS access key ids (``AKIA`` + 16 upper-case alphanumerics) ->
   ``[REDACTED_AWS_KEY]``
3. PEM blocks (``-----BEGIN ...-----`` through ``-----END ...-----``) ->
   ``[REDACTED_CERT]``
4. Runs of 12 or more digits -> ``[REDACTED_NUMBER]``

Each pattern runs once; an earlier pattern wins where matches overlap. The
labels themselves match none of the patterns, so redacting already redacted
text is a no-op. Word boundaries and digits are ASCII-only: a key written
directly after a non-ASCII letter (``キーはsk-...``) is still redacted.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

REDACTION_PATTERNS: List[Tuple[Pattern[str], str]] = [
    (re.compile(r"\b(?:sk|rk|pk|tok|key)-[A-Za-z0-9_-]{8,}\b", re.ASCII), "[REDACTED_KEY]"),
    (re.compile(r"\bAKIA[0-9A-Z]{16}\b", re.ASCII), "[REDACTED_AWS_KEY]"),
    (re.compile(r"-----BEGIN [A-Z ]+-----[\s\S]*?-----END [A-Z ]+-----", re.ASCII), "[REDACTED_CERT]"),
    (re.compile(r"\b\d{12,}\b", re.ASCII), "[REDACTED_NUMBER]"),
]


@dataclass(frozen=True)
class RedactionResult:
    """Redacted text and the number of substitutions made."""

    redacted_text: str
    redaction_count: int

    def to_dict(self):
        return {"redactedText": self.redacted_text, "redactionCount": self.redaction_count}


def redact(text: Optional[str]) -> RedactionResult:
    """Replace sensitive substrings with fixed labels.

    Never raises; ``None`` and the empty string yield an empty result.

    Example:
        >>> redact("my key is sk-abcdef1234567890 and id 123456789012345")
        RedactionResult(redacted_text='my key is [REDACTED_KEY] and id [REDACTED_NUMBER]', redaction_count=2)
    """
    if not text:
        return RedactionResult("", 0)

    count = 0
    for pattern, label in REDACTION_PATTERNS:
        text, replaced = pattern.subn(label, text)
        count += replaced
    return RedactionResult(text, count)


def redact_many(*texts: Optional[str]) -> Tuple[List[str], int]:
    """Redact several fields independently.

    Returns:
        The redacted texts in input order and the summed redaction count
    """
    results = [redact(text) for text in texts]
    return [r.redacted_text for r in results], sum(r.redaction_count for r in results)
