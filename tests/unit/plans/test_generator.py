"""Unit tests for the plan generator."""

import asyncio
import json
from unittest.mock import AsyncMock, Mock, patch

import pytest

from clustercodex.config import Config
from clustercodex.enums import PlanSchema
from clustercodex.issues.fallback import fallback_issues
from clustercodex.llm.provider import LLMError, LLMResponse
from clustercodex.plans.generator import PlanGenerator
from clustercodex.plans.prompts import PlanRequest
from clustercodex.policy import AccessPolicy

VALID_COMBINED = {
    "quickFix": {
        "summary": "Restart after fixing the config.",
        "assumptions": ["Config v2 is broken"],
        "steps": [
            {
                "stepId": "step-1",
                "description": "Check previous logs",
                "kubectl": "kubectl logs api-7f9d5 -n default --previous",
                "validation": "Stack trace visible",
                "rollback": None,
                "impact": "none",
            }
        ],
        "fallback": "Roll back the deployment.",
    },
    "rootCauseHypotheses": ["Bad config"],
    "evidenceToGather": ["Config diff"],
    "recommendations": ["Validate config in CI"],
}


@pytest.fixture
def request_():
    return PlanRequest(
        issue=fallback_issues()[0],
        user_context="deployed sk-abcdef1234567890 yesterday",
        allow_list=AccessPolicy(["default"], ["Pod"]),
    )


@pytest.fixture
def fallback_plan():
    return {"sentinel": True}


def assistant_returning(value):
    assistant = Mock()
    assistant.run = AsyncMock(return_value=value)
    return assistant


class TestGeneratePlan:
    """Test generate_plan."""

    @pytest.mark.asyncio
    async def test_valid_response(self, request_, fallback_plan):
        assistant = assistant_returning(LLMResponse(content=json.dumps(VALID_COMBINED), model="gpt-4o"))
        plan = await PlanGenerator(assistant).generate_plan(request_, fallback_plan)
        assert plan == VALID_COMBINED

    @pytest.mark.asyncio
    async def test_prompt_is_redacted(self, request_, fallback_plan):
        assistant = assistant_returning(json.dumps(VALID_COMBINED))
        await PlanGenerator(assistant).generate_plan(request_, fallback_plan)
        prompt = assistant.run.call_args[0][0]
        assert "sk-abcdef1234567890" not in prompt
        assert "AdditionalUserContext:\ndeployed [REDACTED_KEY] yesterday" in prompt

    @pytest.mark.asyncio
    async def test_fenced_envelope(self, request_, fallback_plan):
        assistant = assistant_returning({"finalResponse": "```json\n" + json.dumps(VALID_COMBINED) + "\n```"})
        plan = await PlanGenerator(assistant).generate_plan(request_, fallback_plan)
        assert plan["quickFix"]["summary"] == "Restart after fixing the config."

    @pytest.mark.asyncio
    async def test_coerced_response(self, request_, fallback_plan):
        response = {
            "quickFix": {
                "summary": "s",
                "steps": [{"description": "d", "validation": "v", "impact": "LOW"}, "junk"],
            },
            "recommendations": [{"text": "r"}, ""],
        }
        plan = await PlanGenerator(assistant_returning(json.dumps(response))).generate_plan(request_, fallback_plan)
        assert plan["quickFix"]["steps"][0]["stepId"] == "step-1"
        assert plan["quickFix"]["steps"][0]["impact"] == "low"
        assert plan["recommendations"] == ["r"]

    @pytest.mark.asyncio
    async def test_mock_mode_returns_fallback_object(self, request_, fallback_plan):
        assistant = assistant_returning("unused")
        plan = await PlanGenerator(assistant, mock_mode=True).generate_plan(request_, fallback_plan)
        assert plan is fallback_plan
        assistant.run.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_required_fields_fall_back(self, request_, fallback_plan):
        response = {"summary": "x", "recommendations": ["r"]}
        generator = PlanGenerator(assistant_returning(json.dumps(response)), schema=PlanSchema.LONG_TERM)
        assert await generator.generate_plan(request_, fallback_plan) is fallback_plan

        response = {"recommendations": ["r"], "riskLevel": "low"}
        generator = PlanGenerator(assistant_returning(json.dumps(response)), schema=PlanSchema.LONG_TERM)
        assert await generator.generate_plan(request_, fallback_plan) is fallback_plan

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["not json at all", "[]", "", json.dumps({"quickFix": {"summary": "s", "steps": []}})])
    async def test_invalid_responses_fall_back(self, request_, fallback_plan, raw):
        plan = await PlanGenerator(assistant_returning(raw)).generate_plan(request_, fallback_plan)
        assert plan is fallback_plan

    @pytest.mark.asyncio
    async def test_assistant_error_falls_back(self, request_, fallback_plan):
        assistant = Mock()
        assistant.run = AsyncMock(side_effect=LLMError("boom"))
        assert await PlanGenerator(assistant).generate_plan(request_, fallback_plan) is fallback_plan

    @pytest.mark.asyncio
    async def test_timeout_falls_back(self, request_, fallback_plan):
        async def slow(prompt):
            await asyncio.sleep(5)
            return json.dumps(VALID_COMBINED)

        assistant = Mock()
        assistant.run = slow
        plan = await PlanGenerator(assistant, timeout=0.01).generate_plan(request_, fallback_plan)
        assert plan is fallback_plan

    @pytest.mark.asyncio
    async def test_no_assistant_falls_back(self, request_, fallback_plan):
        assert await PlanGenerator(None).generate_plan(request_, fallback_plan) is fallback_plan

    @pytest.mark.asyncio
    async def test_default_fallback_is_canned_plan(self, request_):
        plan = await PlanGenerator(assistant_returning("nope")).generate_plan(request_)
        assert plan["quickFix"]["summary"] == "Pod is crash-looping; check config and recent changes."

    @pytest.mark.asyncio
    async def test_only_metadata_logged(self, request_, fallback_plan):
        with patch("clustercodex.plans.generator.log_prompt_metadata") as mock_log:
            await PlanGenerator(assistant_returning("nope")).generate_plan(request_, fallback_plan)

        events = [call.kwargs.get("event", "codex_prompt_metadata") for call in mock_log.call_args_list]
        assert events == ["codex_prompt_metadata", "codex_fallback_used"]
        for call in mock_log.call_args_list:
            meta = call.args[0]
            assert meta["issue_id"] == "k8sgpt:crashloop-1"
            assert meta["redaction_count"] == 1
            assert all("sk-" not in str(value) for value in meta.values())
            assert all("Guardrails" not in str(value) for value in meta.values())

    def test_from_config(self):
        config = Config(codex_mock_mode=True, plan_schema="quick-fix", llm_timeout_seconds=5)
        generator = PlanGenerator.from_config(config)
        assert generator.mock_mode is True
        assert generator.schema == PlanSchema.QUICK_FIX
        assert generator.timeout == 5
