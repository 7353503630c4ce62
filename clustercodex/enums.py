from enum import Enum


class Role(str, Enum):
    """Identity roles."""

    ADMIN = "admin"
    USER = "user"


class PlanSchema(str, Enum):
    """Remediation plan shapes."""

    QUICK_FIX = "quick-fix"
    LONG_TERM = "long-term"
    COMBINED = "combined"


class Impact(str, Enum):
    """Impact of a single remediation step."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskLevel(str, Enum):
    """Overall risk of a long-term plan."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
