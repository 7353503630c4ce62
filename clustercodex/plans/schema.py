"""Strict plan schemas.

Each configured plan shape is a Pydantic model. Validation here is strict:
it runs after best-effort coercion (:mod:`clustercodex.plans.coercion`) and
any failure rejects the whole plan. A partially valid plan is never returned.
"""

from typing import Any, Dict, List, Mapping, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from clustercodex.enums import Impact, PlanSchema, RiskLevel


class PlanValidationError(Exception):
    """Raised when an assistant response does not satisfy the plan schema."""

    def __init__(self, message: str, schema: Optional[PlanSchema] = None):
        super().__init__(message)
        self.schema = schema


class _PlanModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PlanStep(_PlanModel):
    """One remediation step of a quick-fix plan."""

    step_id: str = Field(..., alias="stepId", min_length=1)
    description: str = Field(..., min_length=1)
    kubectl: Optional[str] = None
    validation: str = Field(..., min_length=1)
    rollback: Optional[str] = None
    impact: Impact


class QuickFixPlan(_PlanModel):
    """Immediate, low-risk remediation."""

    summary: str
    assumptions: List[str] = Field(default_factory=list)
    steps: List[PlanStep] = Field(..., min_length=1)
    fallback: str = ""

    @field_validator("summary")
    @classmethod
    def summary_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("summary must not be empty")
        return value


class LongTermPlan(_PlanModel):
    """Root-cause analysis and follow-up recommendations."""

    summary: str
    root_cause_hypotheses: List[str] = Field(default_factory=list, alias="rootCauseHypotheses")
    evidence_to_gather: List[str] = Field(default_factory=list, alias="evidenceToGather")
    recommendations: List[str] = Field(..., min_length=1)
    risk_level: RiskLevel = Field(..., alias="riskLevel")

    @field_validator("summary")
    @classmethod
    def summary_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("summary must not be empty")
        return value


class CombinedPlan(_PlanModel):
    """Quick fix plus analysis."""

    quick_fix: QuickFixPlan = Field(..., alias="quickFix")
    root_cause_hypotheses: List[str] = Field(default_factory=list, alias="rootCauseHypotheses")
    evidence_to_gather: List[str] = Field(default_factory=list, alias="evidenceToGather")
    recommendations: List[str] = Field(default_factory=list)


PlanModel = Union[QuickFixPlan, LongTermPlan, CombinedPlan]

SCHEMA_MODELS: Dict[PlanSchema, Type[_PlanModel]] = {
    PlanSchema.QUICK_FIX: QuickFixPlan,
    PlanSchema.LONG_TERM: LongTermPlan,
    PlanSchema.COMBINED: CombinedPlan,
}

SCHEMA_FIELDS: Dict[PlanSchema, str] = {
    PlanSchema.QUICK_FIX: (
        "summary, assumptions[], steps[{stepId, description, kubectl, validation, rollback, impact}], fallback"
    ),
    PlanSchema.LONG_TERM: (
        "summary, rootCauseHypotheses[], evidenceToGather[], recommendations[], riskLevel (low|medium|high)"
    ),
    PlanSchema.COMBINED: (
        "quickFix{summary, assumptions[], steps[{stepId, description, kubectl, validation, rollback, impact}], "
        "fallback}, rootCauseHypotheses[], evidenceToGather[], recommendations[]"
    ),
}


def validate_plan(data: Any, schema: Union[PlanSchema, str]) -> Dict[str, Any]:
    """Validate a coerced plan against the configured shape.

    Args:
        data: Plan object after coercion
        schema: Plan shape to validate against

    Returns:
        The plan as a JSON-ready dict with camelCase keys

    Raises:
        PlanValidationError: If any required field is missing, empty or invalid
    """
    schema = PlanSchema(schema)
    if not isinstance(data, Mapping):
        raise PlanValidationError(f"Plan must be a JSON object, got {type(data).__name__}", schema)

    model = SCHEMA_MODELS[schema]
    try:
        validated = model.model_validate(dict(data))
    except ValidationError as e:
        raise PlanValidationError(
            f"Plan does not match the {schema.value} schema: {e.error_count()} error(s)", schema
        ) from e
    return validated.model_dump(by_alias=True, mode="json")
