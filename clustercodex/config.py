"""
Configuration management for Cluster Codex.

Implements multi-level configuration loading with precedence:
1. Environment variables (highest priority)
2. Project config (./.clustercodex/config.yaml)
3. User config (~/.clustercodex/config.yaml)
4. System config (/etc/clustercodex/config.yaml)
"""

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict, YamlConfigSettingsSource, PydanticBaseSettingsSource

from clustercodex.enums import PlanSchema


def yaml_config_files() -> List[str]:
    """YAML config files in order of precedence (lowest to highest).

    Resolved on every load so the working directory and home in effect at
    that moment apply.
    """
    return [
        "/etc/clustercodex/config.yaml",  # System-wide
        str(Path.home() / ".clustercodex" / "config.yaml"),  # User-specific
        str(Path.cwd() / ".clustercodex" / "config.yaml"),  # Project-specific
    ]


class Config(BaseSettings):
    """Complete configuration schema for Cluster Codex with flat structure."""

    model_config = SettingsConfigDict(
        # Load from .env files in order of precedence (lowest to highest)
        env_file=[
            ".env.defaults",  # Project defaults
            ".env",  # Project-specific
            str(Path.home() / ".clustercodex" / ".env"),  # User-specific
        ],
        env_prefix="CLUSTERCODEX_",
        env_nested_delimiter="__",
        case_sensitive=False,
        # Ignore extra fields (like OPENAI_API_KEY that aren't part of config schema)
        extra="ignore",
        env_file_encoding="utf-8",
    )

    # =================================================================
    # Kubernetes / diagnostic source
    # =================================================================

    kubernetes_context: Optional[str] = Field(default=None, description="Kubernetes context to use")
    kubeconfig: Optional[str] = Field(default=None, description="Path to the kubeconfig file")
    kubectl_timeout_seconds: int = Field(default=30, ge=1, description="Timeout for a single kubectl call")
    k8sgpt_namespace: str = Field(
        default="k8sgpt-operator-system", description="Namespace holding k8sgpt Result resources"
    )

    # =================================================================
    # LLM Configuration (flat)
    # =================================================================

    llm_default_model: str = Field(default="gpt-4o", description="Model used for plan generation")
    llm_base_url: Optional[str] = Field(default=None, description="Base URL for OpenAI-compatible API")
    llm_api_key_env: str = Field(default="OPENAI_API_KEY", description="Environment variable holding the API key")
    llm_use_azure: bool = Field(default=False, description="Use Azure OpenAI")
    llm_azure_deployment: Optional[str] = Field(default=None, description="Azure deployment name")
    llm_azure_endpoint: Optional[str] = Field(default=None, description="Azure endpoint URL")
    llm_azure_api_version: Optional[str] = Field(default=None, description="Azure API version")
    llm_temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Sampling temperature")
    llm_timeout_seconds: Optional[float] = Field(
        default=120.0, description="Upper bound for one assistant call (None disables)"
    )

    # =================================================================
    # Plan generation
    # =================================================================

    codex_mock_mode: bool = Field(
        default=False, description="Skip the assistant and always return the canned plan"
    )
    plan_schema: PlanSchema = Field(default=PlanSchema.COMBINED, description="Remediation plan shape")

    # =================================================================
    # Access policies
    # =================================================================

    access_policies: Dict[str, Dict[str, List[str]]] = Field(
        default_factory=dict,
        description="Seed policies keyed by user id: {namespaceAllowList: [...], kindAllowList: [...]}",
    )

    # =================================================================
    # HTTP surface
    # =================================================================

    api_host: str = Field(default="127.0.0.1", description="Bind address for the API server")
    api_port: int = Field(default=3001, ge=1, le=65535, description="Port for the API server")
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173"], description="Allowed CORS origins"
    )
    identity_header_user_id: str = Field(default="X-User-Id", description="Header carrying the user id")
    identity_header_email: str = Field(default="X-User-Email", description="Header carrying the user email")
    identity_header_role: str = Field(default="X-User-Role", description="Header carrying the user role")

    # =================================================================
    # Logging
    # =================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO", description="Log level")
    log_json: bool = Field(default=False, description="Render logs as JSON lines")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML support."""
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=yaml_config_files())
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_settings,
            file_secret_settings,
        )

    def get_llm_config(self) -> Dict[str, Any]:
        """Get keyword arguments for the OpenAI provider."""
        return {
            "model": self.llm_default_model,
            "base_url": self.llm_base_url,
            "api_key_env": self.llm_api_key_env,
            "use_azure": self.llm_use_azure,
            "azure_deployment": self.llm_azure_deployment,
            "azure_endpoint": self.llm_azure_endpoint,
            "azure_api_version": self.llm_azure_api_version,
        }

    def get_kubernetes_config(self) -> Dict[str, Any]:
        """Get Kubernetes configuration."""
        return {
            "context": self.kubernetes_context,
            "kubeconfig": self.kubeconfig,
            "timeout": self.kubectl_timeout_seconds,
        }


def load_config() -> Config:
    """
    Load configuration from all sources with proper precedence.

    Precedence (highest to lowest):
    1. Environment variables (CLUSTERCODEX_*)
    2. Project config (./.clustercodex/config.yaml)
    3. User config (~/.clustercodex/config.yaml)
    4. System config (/etc/clustercodex/config.yaml)
    5. User .env (~/.clustercodex/.env)
    6. Project .env (./.env)
    7. Project defaults (./.env.defaults)
    8. Default values

    Examples:
        >>> config = load_config()
        >>> config.k8sgpt_namespace
        'k8sgpt-operator-system'

        # export CLUSTERCODEX_CODEX_MOCK_MODE=true
        >>> load_config().codex_mock_mode
        True

        Seeding a policy via YAML (./.clustercodex/config.yaml):
        access_policies:
          user-basic:
            namespaceAllowList: [broken, my-app]
            kindAllowList: [Pod, Deployment, Event]
    """
    return Config()
