"""Validation utilities for request payloads at the service boundary."""

from typing import Any, List


class ValidationError(Exception):
    """Raised when validation fails.

    Attributes:
        field: Name of the offending field, if known
    """

    def __init__(self, message: str, field: str = ""):
        super().__init__(message)
        self.field = field


def validate_issue_id(issue_id: Any) -> str:
    """
    Validate an issue identifier taken from a request body.

    Args:
        issue_id: Raw value

    Returns:
        The identifier, stripped

    Raises:
        ValidationError: If the identifier is missing, empty, or not a string

    Example:
        >>> validate_issue_id(" k8sgpt:oom-1 ")
        'k8sgpt:oom-1'
    """
    if not isinstance(issue_id, str) or not issue_id.strip():
        raise ValidationError("issueId is required", field="issueId")
    return issue_id.strip()


def validate_allow_list(value: Any, field: str) -> List[str]:
    """
    Validate one allow-list of an access policy update.

    Entries are stripped and empty entries dropped; order is kept.

    Args:
        value: Raw value
        field: Field name used in the error message

    Returns:
        The cleaned list

    Raises:
        ValidationError: If the value is not a list of strings

    Example:
        >>> validate_allow_list(["default", " my-app ", ""], "namespaceAllowList")
        ['default', 'my-app']
    """
    if not isinstance(value, list):
        raise ValidationError(
            "namespaceAllowList and kindAllowList are required", field=field
        )
    cleaned = []
    for entry in value:
        if not isinstance(entry, str):
            raise ValidationError(f"{field} must contain only strings", field=field)
        if entry.strip():
            cleaned.append(entry.strip())
    return cleaned


def validate_kind(kind: Any) -> str:
    """
    Validate the resource kind requested from the resource browser.

    Raises:
        ValidationError: If the kind is missing or not a single word
    """
    if not isinstance(kind, str) or not kind.strip():
        raise ValidationError("Missing query param: kind", field="kind")
    kind = kind.strip()
    if not kind.replace(".", "").isalnum():
        raise ValidationError(f"Invalid resource kind: {kind}", field="kind")
    return kind


def validate_user_id(user_id: Any) -> str:
    """
    Validate the target user of an administrative policy read or update.

    Raises:
        ValidationError: If the user id is missing or empty
    """
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValidationError("userId is required", field="userId")
    return user_id.strip()
