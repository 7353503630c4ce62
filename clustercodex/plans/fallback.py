"""Canned remediation plans.

Served in mock mode and whenever the assistant fails or returns something
that does not validate. Plans are keyed by the lower-cased issue title with a
generic default for unknown titles.
"""

import copy
from typing import Any, Dict, Union

from clustercodex.enums import PlanSchema
from clustercodex.issues.models import Issue

QUICK_FIX_BY_TITLE: Dict[str, Dict[str, Any]] = {
    "crashloopbackoff": {
        "summary": "Pod is crash-looping; check config and recent changes.",
        "assumptions": ["Recent config or image changes may be causing the crash."],
        "steps": [
            {
                "stepId": "step-1",
                "description": "Inspect previous container logs for the crash reason.",
                "kubectl": "kubectl logs <pod> -n <namespace> --previous",
                "validation": "Log output shows the error leading to the crash.",
                "rollback": None,
                "impact": "none",
            },
            {
                "stepId": "step-2",
                "description": "Compare current config with the last known-good version.",
                "kubectl": "kubectl get configmap <name> -n <namespace> -o yaml",
                "validation": "Diff highlights recent changes tied to the failure.",
                "rollback": None,
                "impact": "none",
            },
        ],
        "fallback": "Rollback to the last known-good config or image.",
    },
    "imagepullbackoff": {
        "summary": "Image pull failed; validate image name and registry access.",
        "assumptions": ["Image tag or registry credentials may be incorrect."],
        "steps": [
            {
                "stepId": "step-1",
                "description": "Verify the image tag exists in the registry.",
                "kubectl": "kubectl describe pod <pod> -n <namespace>",
                "validation": "Events show the exact image and pull error.",
                "rollback": None,
                "impact": "none",
            },
            {
                "stepId": "step-2",
                "description": "Check imagePullSecrets or registry access settings.",
                "kubectl": "kubectl get secret <secret> -n <namespace>",
                "validation": "Secret is present and referenced by the workload.",
                "rollback": None,
                "impact": "none",
            },
        ],
        "fallback": "Pin to a known-good image tag.",
    },
    "oomkilled": {
        "summary": "Pod was OOMKilled; validate memory usage and limits.",
        "assumptions": ["Workload may exceed configured memory limits."],
        "steps": [
            {
                "stepId": "step-1",
                "description": "Inspect memory usage to confirm OOM conditions.",
                "kubectl": "kubectl top pod <pod> -n <namespace>",
                "validation": "Observed memory usage spikes near the limit.",
                "rollback": None,
                "impact": "none",
            },
            {
                "stepId": "step-2",
                "description": "Review requests/limits for the workload.",
                "kubectl": "kubectl get deploy <name> -n <namespace> -o yaml",
                "validation": "Limits align with observed usage patterns.",
                "rollback": None,
                "impact": "low",
            },
        ],
        "fallback": "Temporarily increase memory limits while investigating.",
    },
}

DEFAULT_QUICK_FIX: Dict[str, Any] = {
    "summary": "Investigate the issue with targeted checks.",
    "assumptions": ["Recent changes may have introduced the problem."],
    "steps": [
        {
            "stepId": "step-1",
            "description": "Inspect recent events and logs for the resource.",
            "kubectl": "kubectl describe <kind>/<name> -n <namespace>",
            "validation": "Events highlight the root error.",
            "rollback": None,
            "impact": "none",
        }
    ],
    "fallback": "Escalate to the platform team with collected evidence.",
}

ANALYSIS_BY_TITLE: Dict[str, Dict[str, Any]] = {
    "crashloopbackoff": {
        "rootCauseHypotheses": ["Invalid config introduced during deploy."],
        "evidenceToGather": ["Compare config versions", "Review deployment history"],
        "recommendations": ["Add config validation CI step", "Use canary deploys"],
        "riskLevel": "medium",
    },
    "imagepullbackoff": {
        "rootCauseHypotheses": ["Missing image tag in registry"],
        "evidenceToGather": ["CI logs for image build", "Registry audit logs"],
        "recommendations": ["Add publish verification", "Introduce tag promotion gates"],
        "riskLevel": "low",
    },
    "oomkilled": {
        "rootCauseHypotheses": ["Memory leaks or undersized limits"],
        "evidenceToGather": ["Heap profiles", "Historical memory metrics"],
        "recommendations": ["Add autoscaling based on memory", "Profile hot paths"],
        "riskLevel": "medium",
    },
}

DEFAULT_ANALYSIS: Dict[str, Any] = {
    "rootCauseHypotheses": ["Unknown configuration or runtime regression"],
    "evidenceToGather": ["Deployment diffs", "Resource metrics"],
    "recommendations": ["Add automated checks", "Improve alerting coverage"],
    "riskLevel": "medium",
}


def get_fallback_plan(issue: Union[Issue, str], schema: Union[PlanSchema, str] = PlanSchema.COMBINED) -> Dict[str, Any]:
    """Canned plan for an issue in the requested shape.

    Args:
        issue: The issue, or just its title
        schema: Plan shape to produce

    Returns:
        A fresh dict the caller may modify
    """
    title = issue if isinstance(issue, str) else issue.title
    key = (title or "").lower()
    quick_fix = copy.deepcopy(QUICK_FIX_BY_TITLE.get(key, DEFAULT_QUICK_FIX))
    analysis = copy.deepcopy(ANALYSIS_BY_TITLE.get(key, DEFAULT_ANALYSIS))

    schema = PlanSchema(schema)
    if schema == PlanSchema.QUICK_FIX:
        return quick_fix
    if schema == PlanSchema.LONG_TERM:
        return {
            "summary": quick_fix["summary"],
            "rootCauseHypotheses": analysis["rootCauseHypotheses"],
            "evidenceToGather": analysis["evidenceToGather"],
            "recommendations": analysis["recommendations"],
            "riskLevel": analysis["riskLevel"],
        }
    return {
        "quickFix": quick_fix,
        "rootCauseHypotheses": analysis["rootCauseHypotheses"],
        "evidenceToGather": analysis["evidenceToGather"],
        "recommendations": analysis["recommendations"],
    }
