"""Remediation plan generation."""

from clustercodex.plans.coercion import (
    coerce_plan,
    coerce_steps,
    coerce_text,
    coerce_text_list,
    extract_response_text,
    parse_json_object,
    strip_code_fence,
)
from clustercodex.plans.fallback import get_fallback_plan
from clustercodex.plans.generator import PlanGenerator
from clustercodex.plans.prompts import PlanRequest, build_prompt, merge_user_context
from clustercodex.plans.schema import (
    CombinedPlan,
    LongTermPlan,
    PlanStep,
    PlanValidationError,
    QuickFixPlan,
    validate_plan,
)

__all__ = [
    "coerce_plan",
    "coerce_steps",
    "coerce_text",
    "coerce_text_list",
    "extract_response_text",
    "parse_json_object",
    "strip_code_fence",
    "get_fallback_plan",
    "PlanGenerator",
    "PlanRequest",
    "build_prompt",
    "merge_user_context",
    "CombinedPlan",
    "LongTermPlan",
    "PlanStep",
    "PlanValidationError",
    "QuickFixPlan",
    "validate_plan",
]
