"""Unit tests for strict plan validation."""

import pytest

from clustercodex.enums import PlanSchema
from clustercodex.plans.fallback import get_fallback_plan
from clustercodex.plans.schema import PlanValidationError, validate_plan

STEP = {
    "stepId": "step-1",
    "description": "Inspect logs",
    "kubectl": "kubectl logs api -n default --previous",
    "validation": "Logs show the error",
    "rollback": None,
    "impact": "none",
}


class TestQuickFix:
    """Test the quick-fix shape."""

    def test_valid(self):
        plan = validate_plan({"summary": "s", "steps": [STEP]}, PlanSchema.QUICK_FIX)
        assert plan == {"summary": "s", "assumptions": [], "steps": [STEP], "fallback": ""}

    @pytest.mark.parametrize(
        "data",
        [
            {"steps": [STEP]},
            {"summary": "", "steps": [STEP]},
            {"summary": "   ", "steps": [STEP]},
            {"summary": "s", "steps": []},
            {"summary": "s"},
            {"summary": "s", "steps": [dict(STEP, impact="catastrophic")]},
            {"summary": "s", "steps": [dict(STEP, validation="")]},
            {"summary": "s", "steps": [{k: v for k, v in STEP.items() if k != "description"}]},
            {"summary": "s", "steps": [STEP], "assumptions": "not a list"},
        ],
    )
    def test_invalid(self, data):
        with pytest.raises(PlanValidationError):
            validate_plan(data, PlanSchema.QUICK_FIX)


class TestLongTerm:
    """Test the long-term shape."""

    def test_valid(self):
        plan = validate_plan({"summary": "s", "recommendations": ["r"], "riskLevel": "low"}, "long-term")
        assert plan["riskLevel"] == "low"
        assert plan["rootCauseHypotheses"] == []

    @pytest.mark.parametrize(
        "data",
        [
            {"summary": "s", "recommendations": ["r"]},
            {"summary": "s", "recommendations": ["r"], "riskLevel": "extreme"},
            {"summary": "s", "recommendations": [], "riskLevel": "low"},
            {"recommendations": ["r"], "riskLevel": "low"},
        ],
    )
    def test_invalid(self, data):
        with pytest.raises(PlanValidationError):
            validate_plan(data, PlanSchema.LONG_TERM)


class TestCombined:
    """Test the combined shape."""

    def test_valid(self):
        plan = validate_plan({"quickFix": {"summary": "s", "steps": [STEP]}, "recommendations": ["r"]}, "combined")
        assert plan["quickFix"]["steps"] == [STEP]
        assert plan["recommendations"] == ["r"]
        assert plan["evidenceToGather"] == []

    def test_missing_quick_fix(self):
        with pytest.raises(PlanValidationError):
            validate_plan({"summary": "s", "steps": [STEP]}, PlanSchema.COMBINED)

    def test_not_a_mapping(self):
        with pytest.raises(PlanValidationError, match="JSON object"):
            validate_plan(["summary"], PlanSchema.COMBINED)


class TestFallbackPlans:
    """Canned plans must satisfy their own schema."""

    @pytest.mark.parametrize("title", ["CrashLoopBackOff", "ImagePullBackOff", "OOMKilled", "SomethingElse"])
    @pytest.mark.parametrize("schema", list(PlanSchema))
    def test_fallback_is_valid(self, title, schema):
        plan = get_fallback_plan(title, schema)
        assert validate_plan(plan, schema) == plan

    def test_keyed_by_lowercase_title(self):
        plan = get_fallback_plan("oomkilled", PlanSchema.QUICK_FIX)
        assert plan["fallback"] == "Temporarily increase memory limits while investigating."

    def test_default_plan(self):
        plan = get_fallback_plan("Unheard-of", PlanSchema.COMBINED)
        assert plan["quickFix"]["summary"] == "Investigate the issue with targeted checks."
        assert plan["rootCauseHypotheses"] == ["Unknown configuration or runtime regression"]

    def test_fresh_copies(self):
        first = get_fallback_plan("OOMKilled")
        first["quickFix"]["steps"].clear()
        assert get_fallback_plan("OOMKilled")["quickFix"]["steps"]
