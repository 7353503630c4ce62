"""Remediation plan generator.

Pipeline for one request:

1. redact the four free-text sources and build the prompt
2. in mock mode, return the fallback plan without calling the assistant
3. call the assistant, bounded by the configured timeout
4. extract the response text, strip a code fence, parse JSON
5. coerce, then strictly validate against the configured plan shape

Any failure in steps 3 to 5 yields the fallback plan. The generator never
raises and never retries; only prompt metadata is logged.
"""

import asyncio
from typing import Any, Dict, Optional, Union

import structlog

from clustercodex.config import Config
from clustercodex.enums import PlanSchema
from clustercodex.llm.assistant import AssistantClient
from clustercodex.plans.coercion import coerce_plan, extract_response_text, parse_json_object
from clustercodex.plans.fallback import get_fallback_plan
from clustercodex.plans.prompts import PlanRequest, build_prompt
from clustercodex.plans.schema import validate_plan
from clustercodex.utils.logging import log_prompt_metadata

logger = structlog.get_logger(__name__)


class PlanGenerator:
    """Generates validated remediation plans.

    Args:
        assistant: Assistant collaborator; may be None in mock mode
        mock_mode: Return the fallback plan without calling the assistant
        schema: Plan shape the assistant must produce
        timeout: Upper bound in seconds for one assistant call, or None
    """

    def __init__(
        self,
        assistant: Optional[AssistantClient] = None,
        mock_mode: bool = False,
        schema: Union[PlanSchema, str] = PlanSchema.COMBINED,
        timeout: Optional[float] = None,
    ):
        self.assistant = assistant
        self.mock_mode = mock_mode
        self.schema = PlanSchema(schema)
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Config, assistant: Optional[AssistantClient] = None) -> "PlanGenerator":
        return cls(
            assistant=assistant,
            mock_mode=config.codex_mock_mode,
            schema=config.plan_schema,
            timeout=config.llm_timeout_seconds,
        )

    def fallback_for(self, request: PlanRequest) -> Dict[str, Any]:
        return get_fallback_plan(request.issue, self.schema)

    async def generate_plan(
        self, request: PlanRequest, fallback_plan: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Produce a plan for the request, or the fallback plan.

        Args:
            request: Issue, operator context and the caller's access policy
            fallback_plan: Plan returned on any failure; the canned plan for
                the issue title when omitted

        Returns:
            A plan dict in the configured shape. In mock mode this is the
            fallback_plan object itself.
        """
        if fallback_plan is None:
            fallback_plan = self.fallback_for(request)

        prompt, meta = build_prompt(request, self.schema)
        log_prompt_metadata({**meta, "schema": self.schema.value, "mock_mode": self.mock_mode})

        if self.mock_mode:
            return fallback_plan

        if self.assistant is None:
            log_prompt_metadata({**meta, "reason": "no_assistant"}, event="codex_fallback_used")
            return fallback_plan

        try:
            plan = await self._ask(prompt)
        except Exception as e:
            # Exception text may echo the prompt or response; only the type is logged
            log_prompt_metadata({**meta, "reason": type(e).__name__}, event="codex_fallback_used")
            return fallback_plan

        logger.debug("codex_plan_validated", issue_id=meta["issue_id"], schema=self.schema.value)
        return plan

    async def _ask(self, prompt: str) -> Dict[str, Any]:
        if self.timeout:
            response = await asyncio.wait_for(self.assistant.run(prompt), timeout=self.timeout)
        else:
            response = await self.assistant.run(prompt)

        text = extract_response_text(response)
        data = parse_json_object(text)
        return validate_plan(coerce_plan(data, self.schema), self.schema)
