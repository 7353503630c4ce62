"""Best-effort normalization of assistant responses.

Assistants return loosely structured output: text wrapped in an envelope,
JSON fenced in Markdown, lists of objects where lists of strings are expected.
The helpers here repair what can be repaired without guessing at meaning.
Nothing in this module decides whether a plan is acceptable; that is
:func:`clustercodex.plans.schema.validate_plan`.
"""

import json
import re
from typing import Any, Dict, List, Mapping, Optional, Union

from clustercodex.enums import PlanSchema
from clustercodex.plans.schema import PlanValidationError

ENVELOPE_KEYS = ("finalResponse", "final_response", "response", "output_text", "content", "text")
TEXT_SUBFIELDS = ("text", "description", "summary")

_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*\s*\n?(.*?)\n?```$", re.DOTALL)


def _dump(value: Any) -> str:
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return str(value)


def extract_response_text(response: Any) -> str:
    """Pull the response text out of an assistant envelope.

    A bare string is returned as-is. Otherwise the first string found under
    one of ENVELOPE_KEYS wins, looked up as mapping keys first and then as
    attributes. Anything else is JSON-dumped.
    """
    if isinstance(response, str):
        return response
    if response is None:
        return ""

    if isinstance(response, Mapping):
        for key in ENVELOPE_KEYS:
            value = response.get(key)
            if isinstance(value, str):
                return value

    for key in ENVELOPE_KEYS:
        value = getattr(response, key, None)
        if isinstance(value, str):
            return value

    return _dump(response)


def strip_code_fence(text: str) -> str:
    """Remove a Markdown code fence surrounding the whole text.

    Example:
        >>> strip_code_fence('```json\\n{"a": 1}\\n```')
        '{"a": 1}'
    """
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def parse_json_object(text: str) -> Dict[str, Any]:
    """Parse assistant text as a single JSON object.

    Raises:
        PlanValidationError: If the text is not JSON or not an object
    """
    cleaned = strip_code_fence(text or "")
    if not cleaned:
        raise PlanValidationError("Assistant returned an empty response")
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise PlanValidationError(f"Assistant response is not valid JSON: {e.msg}") from e
    if not isinstance(parsed, dict):
        raise PlanValidationError(f"Assistant response is a JSON {type(parsed).__name__}, expected an object")
    return parsed


def coerce_text(value: Any) -> str:
    """Reduce one list item to a string.

    Strings pass through; mappings contribute their first string under
    TEXT_SUBFIELDS; anything else is JSON-dumped.
    """
    if isinstance(value, str):
        return value.strip()
    if value is None:
        return ""
    if isinstance(value, Mapping):
        for key in TEXT_SUBFIELDS:
            sub = value.get(key)
            if isinstance(sub, str):
                return sub.strip()
    return _dump(value)


def coerce_text_list(value: Any) -> Any:
    """Coerce every item of a list to a string, dropping empty ones.

    Non-list values are returned unchanged for strict validation to judge.
    """
    if not isinstance(value, list):
        return value
    items = (coerce_text(item) for item in value)
    return [item for item in items if item]


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = coerce_text(value)
    return text or None


def coerce_steps(value: Any) -> Any:
    """Normalize quick-fix steps.

    Non-mapping entries are dropped. Each kept step gets ``step-<n>`` when it
    has no id and a lower-cased impact.
    """
    if not isinstance(value, list):
        return value

    steps: List[Dict[str, Any]] = []
    for raw in value:
        if not isinstance(raw, Mapping):
            continue
        step = dict(raw)
        step_id = step.get("stepId")
        if step_id is None or (isinstance(step_id, str) and not step_id.strip()):
            step["stepId"] = f"step-{len(steps) + 1}"
        elif not isinstance(step_id, str):
            step["stepId"] = str(step_id)
        if isinstance(step.get("impact"), str):
            step["impact"] = step["impact"].strip().lower()
        for key in ("kubectl", "rollback"):
            if key in step:
                step[key] = _optional_text(step[key])
        for key in ("description", "validation"):
            if key in step and not isinstance(step[key], str):
                step[key] = coerce_text(step[key])
        steps.append(step)
    return steps


def _coerce_quick_fix(data: Mapping[str, Any]) -> Dict[str, Any]:
    plan = dict(data)
    if "assumptions" in plan:
        plan["assumptions"] = coerce_text_list(plan["assumptions"])
    if "steps" in plan:
        plan["steps"] = coerce_steps(plan["steps"])
    if plan.get("fallback") is None:
        plan.pop("fallback", None)
    elif not isinstance(plan["fallback"], str):
        plan["fallback"] = coerce_text(plan["fallback"])
    return plan


def _coerce_analysis(plan: Dict[str, Any]) -> Dict[str, Any]:
    for key in ("rootCauseHypotheses", "evidenceToGather", "recommendations"):
        if key in plan:
            plan[key] = coerce_text_list(plan[key])
    return plan


def coerce_plan(data: Mapping[str, Any], schema: Union[PlanSchema, str]) -> Dict[str, Any]:
    """Best-effort normalization of a parsed plan for the given shape.

    Returns a new dict; the input is not modified.
    """
    schema = PlanSchema(schema)

    if schema == PlanSchema.QUICK_FIX:
        return _coerce_quick_fix(data)

    plan = _coerce_analysis(dict(data))
    if schema == PlanSchema.LONG_TERM:
        if isinstance(plan.get("riskLevel"), str):
            plan["riskLevel"] = plan["riskLevel"].strip().lower()
        return plan

    if isinstance(plan.get("quickFix"), Mapping):
        plan["quickFix"] = _coerce_quick_fix(plan["quickFix"])
    return plan
