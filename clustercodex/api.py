"""HTTP surface for Cluster Codex.

Routes are thin: they resolve the caller from forwarded identity headers,
validate the request body and delegate to the components stored on
``app.state``. Every error leaves the service as ``{error, code, details}``.
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from clustercodex import __version__
from clustercodex.config import Config, load_config
from clustercodex.dismissals import DismissalStore
from clustercodex.fetchers.base import FetchError
from clustercodex.fetchers.k8sgpt import K8sGPTSource
from clustercodex.fetchers.kubernetes import KubernetesClient
from clustercodex.identity import HeaderIdentityResolver
from clustercodex.issues.aggregator import IssueAggregator, load_issues_or_fallback
from clustercodex.issues.models import Issue
from clustercodex.llm.assistant import assistant_from_config
from clustercodex.llm.provider import LLMError
from clustercodex.plans.generator import PlanGenerator
from clustercodex.plans.prompts import PlanRequest
from clustercodex.policy import AccessPolicy, AccessPolicyEngine, UserInfo
from clustercodex.utils.validation import (
    ValidationError,
    validate_allow_list,
    validate_issue_id,
    validate_kind,
    validate_user_id,
)

logger = structlog.get_logger(__name__)


class ApiError(Exception):
    """Error rendered as the JSON error envelope."""

    def __init__(self, message: str, code: str, status: int = 500, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.details = details or {}


def error_response(status: int, message: str, code: str, details: Optional[Dict[str, Any]] = None) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message, "code": code, "details": details or {}})


# --- Request models ---

class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class IssueActionRequest(_Body):
    issue_id: Any = Field(default=None, alias="issueId")


class PlanGenerationRequest(_Body):
    issue_id: Any = Field(default=None, alias="issueId")
    user_context: Optional[str] = Field(default="", alias="userContext")


class PolicyUpdateRequest(_Body):
    user_id: Any = Field(default=None, alias="userId")
    namespace_allow_list: Any = Field(default=None, alias="namespaceAllowList")
    kind_allow_list: Any = Field(default=None, alias="kindAllowList")


# --- Dependencies ---

def current_user(request: Request) -> UserInfo:
    user = request.app.state.identity_resolver.resolve(request.headers)
    if user is None:
        raise ApiError("Authorization required", "AUTH_REQUIRED", 401)
    return user


def admin_user(user: UserInfo = Depends(current_user)) -> UserInfo:
    if not user.is_admin:
        raise ApiError("Admin access required", "FORBIDDEN", 403)
    return user


async def visible_issues(request: Request, user: UserInfo) -> List[Issue]:
    """Current issues filtered by the caller's access policy."""
    issues, degraded = await load_issues_or_fallback(request.app.state.aggregator)
    if degraded:
        logger.info("serving_fallback_issues", user_id=user.id, count=len(issues))
    return request.app.state.policy_engine.filter_issues(issues, user)


def _default_generator(config: Config) -> PlanGenerator:
    assistant = None
    if not config.codex_mock_mode:
        try:
            assistant = assistant_from_config(config)
        except LLMError as e:
            logger.warning("assistant_unavailable_plans_will_fall_back", error=str(e))
    return PlanGenerator.from_config(config, assistant=assistant)


def create_app(
    config: Optional[Config] = None,
    aggregator: Optional[IssueAggregator] = None,
    policy_engine: Optional[AccessPolicyEngine] = None,
    dismissals: Optional[DismissalStore] = None,
    generator: Optional[PlanGenerator] = None,
    identity_resolver: Optional[HeaderIdentityResolver] = None,
    client: Optional[KubernetesClient] = None,
) -> FastAPI:
    """Build the application with its components.

    Components not passed in are created from the configuration. They live
    on ``app.state`` for the lifetime of the process.
    """
    config = config or load_config()
    client = client or KubernetesClient(config.get_kubernetes_config())

    app = FastAPI(
        title="Cluster Codex API",
        description="Kubernetes issue triage and remediation plans",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.client = client
    app.state.aggregator = aggregator or IssueAggregator(
        K8sGPTSource(client, {"namespace": config.k8sgpt_namespace}), client
    )
    app.state.policy_engine = policy_engine or AccessPolicyEngine.from_config(config.access_policies)
    app.state.dismissals = dismissals or DismissalStore()
    app.state.generator = generator or _default_generator(config)
    app.state.identity_resolver = identity_resolver or HeaderIdentityResolver.from_config(config)

    _register_error_handlers(app)
    _register_routes(app)
    return app


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        return error_response(exc.status, exc.message, exc.code, exc.details)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        details = {"field": exc.field} if exc.field else {}
        return error_response(400, str(exc), "VALIDATION_ERROR", details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
        return error_response(400, "Invalid request", "VALIDATION_ERROR", {"fields": fields})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return error_response(404, "Not found", "NOT_FOUND", {"path": request.url.path})
        return error_response(exc.status_code, str(exc.detail), "HTTP_ERROR")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_error", path=request.url.path, error=str(exc), exc_info=exc)
        return error_response(500, "Internal server error", "INTERNAL_ERROR")


def _register_routes(app: FastAPI) -> None:
    @app.get("/health")
    async def health() -> Dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    # --- Issues ---

    @app.get("/api/issues")
    async def list_issues(request: Request, user: UserInfo = Depends(current_user)) -> List[Dict[str, Any]]:
        issues = await visible_issues(request, user)
        active, _ = request.app.state.dismissals.split(user, issues)
        return [issue.to_dict() for issue in active]

    @app.get("/api/issues/dismissed")
    async def list_dismissed_issues(request: Request, user: UserInfo = Depends(current_user)) -> List[Dict[str, Any]]:
        issues = await visible_issues(request, user)
        _, dismissed = request.app.state.dismissals.split(user, issues)
        return [issue.to_dict() for issue in dismissed]

    @app.post("/api/issues/dismiss")
    async def dismiss_issue(
        body: IssueActionRequest, request: Request, user: UserInfo = Depends(current_user)
    ) -> Dict[str, str]:
        issue_id = validate_issue_id(body.issue_id)
        request.app.state.dismissals.dismiss(user, issue_id)
        logger.info("issue_dismissed", user_id=user.id, issue_id=issue_id)
        return {"status": "ok"}

    @app.post("/api/issues/restore")
    async def restore_issue(
        body: IssueActionRequest, request: Request, user: UserInfo = Depends(current_user)
    ) -> Dict[str, str]:
        issue_id = validate_issue_id(body.issue_id)
        request.app.state.dismissals.restore(user, issue_id)
        logger.info("issue_restored", user_id=user.id, issue_id=issue_id)
        return {"status": "ok"}

    # --- Plans ---

    @app.post("/api/plans/codex")
    async def generate_codex_plan(
        body: PlanGenerationRequest, request: Request, user: UserInfo = Depends(current_user)
    ) -> Dict[str, Any]:
        issue_id = validate_issue_id(body.issue_id)
        issues = await visible_issues(request, user)
        issue = next((candidate for candidate in issues if candidate.id == issue_id), None)
        if issue is None:
            raise ApiError("Issue not found", "NOT_FOUND", 404, {"issueId": issue_id})

        generator: PlanGenerator = request.app.state.generator
        plan_request = PlanRequest(
            issue=issue,
            user_context=body.user_context or "",
            allow_list=request.app.state.policy_engine.resolve_policy(user),
        )
        return await generator.generate_plan(plan_request, generator.fallback_for(plan_request))

    # --- Access policy ---

    @app.get("/api/access-policy")
    async def get_own_access_policy(request: Request, user: UserInfo = Depends(current_user)) -> Dict[str, Any]:
        return request.app.state.policy_engine.resolve_policy(user).to_dict()

    @app.get("/api/admin/access-policy")
    async def get_access_policy(
        request: Request,
        user_id: Optional[str] = Query(default=None, alias="userId"),
        admin: UserInfo = Depends(admin_user),
    ) -> Dict[str, Any]:
        target = validate_user_id(user_id)
        return {"userId": target, **request.app.state.policy_engine.get_policy(target).to_dict()}

    @app.post("/api/admin/access-policy")
    async def update_access_policy(
        body: PolicyUpdateRequest, request: Request, admin: UserInfo = Depends(admin_user)
    ) -> Dict[str, str]:
        target = validate_user_id(body.user_id)
        policy = AccessPolicy(
            namespace_allow_list=validate_allow_list(body.namespace_allow_list, "namespaceAllowList"),
            kind_allow_list=validate_allow_list(body.kind_allow_list, "kindAllowList"),
        )
        request.app.state.policy_engine.update_policy(target, policy)
        return {"status": "ok"}

    # --- Resources ---

    @app.get("/api/resources")
    async def list_resources(
        request: Request,
        kind: Optional[str] = Query(default=None),
        user: UserInfo = Depends(current_user),
    ) -> List[Dict[str, Any]]:
        kind = validate_kind(kind)
        try:
            rows = await request.app.state.client.list_resources(kind)
        except FetchError as e:
            logger.warning("resource_listing_failed", kind=kind, error=str(e))
            return []
        return request.app.state.policy_engine.filter_resources(rows, user)
