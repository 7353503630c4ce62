"""
Command-line interface for Cluster Codex.

Main entry point for the ``clustercodex`` command: run the API server, list
current findings, redact text, and generate a remediation plan from the
terminal.
"""
import asyncio
import json
import sys
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from clustercodex import __version__
from clustercodex.config import Config, load_config
from clustercodex.enums import PlanSchema, Role
from clustercodex.fetchers.k8sgpt import K8sGPTSource
from clustercodex.fetchers.kubernetes import KubernetesClient
from clustercodex.issues.aggregator import IssueAggregator, load_issues_or_fallback
from clustercodex.issues.models import Issue
from clustercodex.llm.assistant import assistant_from_config
from clustercodex.llm.provider import LLMError
from clustercodex.plans.generator import PlanGenerator
from clustercodex.plans.prompts import PlanRequest, merge_user_context
from clustercodex.policy import AccessPolicyEngine, UserInfo
from clustercodex.redaction import redact as redact_text
from clustercodex.utils.logging import configure_logging

app = typer.Typer(
    name="clustercodex",
    help="Kubernetes issue triage with redacted, guardrailed remediation plans",
    add_completion=False,
)

console = Console()

SEVERITY_STYLES = {"critical": "bold red", "high": "red", "medium": "yellow", "low": "green"}


def _setup(verbose: bool = False) -> Config:
    config = load_config()
    configure_logging("DEBUG" if verbose else config.log_level, json_output=config.log_json)
    return config


def _aggregator(config: Config) -> IssueAggregator:
    client = KubernetesClient(config.get_kubernetes_config())
    return IssueAggregator(K8sGPTSource(client, {"namespace": config.k8sgpt_namespace}), client)


async def _load_issues(config: Config, user: UserInfo) -> List[Issue]:
    issues, degraded = await load_issues_or_fallback(_aggregator(config))
    if degraded:
        console.print("[yellow]Diagnostic source unavailable; showing sample issues[/yellow]")
    return AccessPolicyEngine.from_config(config.access_policies).filter_issues(issues, user)


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"Cluster Codex version {__version__}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (defaults to api_host)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (defaults to api_port)"),
    mock: bool = typer.Option(False, "--mock", help="Serve canned plans without calling the assistant"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every kubectl call"),
) -> None:
    """Run the HTTP API server."""
    import uvicorn

    from clustercodex.api import create_app

    config = _setup(verbose)
    if mock:
        config.codex_mock_mode = True

    uvicorn.run(
        create_app(config),
        host=host or config.api_host,
        port=port or config.api_port,
        log_level="debug" if verbose else "info",
    )


@app.command()
def issues(
    user_id: str = typer.Option("cli", "--user", "-u", help="User id whose access policy applies"),
    role: Role = typer.Option(Role.ADMIN, "--role", help="Role of the user"),
    output_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every kubectl call"),
) -> None:
    """List current findings visible to a user."""
    config = _setup(verbose)
    found = asyncio.run(_load_issues(config, UserInfo(id=user_id, role=role)))

    if output_json:
        typer.echo(json.dumps([issue.to_dict() for issue in found], indent=2))
        return

    if not found:
        console.print("[yellow]No issues found[/yellow]")
        return

    table = Table(title="Cluster Issues")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Severity")
    table.add_column("Namespace")
    table.add_column("Object")
    table.add_column("Detected", style="dim")
    for issue in found:
        style = SEVERITY_STYLES.get(issue.severity, "white")
        table.add_row(
            issue.id,
            issue.title,
            f"[{style}]{issue.severity}[/{style}]",
            issue.namespace,
            f"{issue.kind}/{issue.name}",
            issue.detected_at,
        )
    console.print(table)


@app.command()
def redact(
    text: Optional[str] = typer.Argument(None, help="Text to redact; read from stdin when omitted"),
) -> None:
    """Redact secrets from text and print the redaction count."""
    if text is None:
        text = sys.stdin.read()
    result = redact_text(text)
    typer.echo(result.redacted_text)
    typer.echo(f"Redactions: {result.redaction_count}", err=True)


@app.command()
def plan(
    issue_id: str = typer.Argument(..., help="Issue id (see `clustercodex issues`)"),
    user_id: str = typer.Option("cli", "--user", "-u", help="User id whose access policy applies"),
    role: Role = typer.Option(Role.ADMIN, "--role", help="Role of the user"),
    context: str = typer.Option("", "--context", "-c", help="Additional context for the assistant"),
    with_snapshot: bool = typer.Option(
        False, "--with-snapshot", help="Prepend the issue's context snapshot to --context"
    ),
    schema: Optional[PlanSchema] = typer.Option(None, "--schema", help="Plan shape (defaults to plan_schema)"),
    mock: bool = typer.Option(False, "--mock", help="Return the canned plan without calling the assistant"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every kubectl call"),
) -> None:
    """Generate a remediation plan for one issue."""
    config = _setup(verbose)
    if mock:
        config.codex_mock_mode = True
    if schema is not None:
        config.plan_schema = schema

    user = UserInfo(id=user_id, role=role)
    found = asyncio.run(_load_issues(config, user))
    issue = next((candidate for candidate in found if candidate.id == issue_id), None)
    if issue is None:
        typer.echo(f"Error: issue '{issue_id}' not found or not visible to {user_id}", err=True)
        raise typer.Exit(1)

    assistant = None
    if not config.codex_mock_mode:
        try:
            assistant = assistant_from_config(config)
        except LLMError as e:
            console.print(f"[yellow]Assistant unavailable ({e}); using the canned plan[/yellow]")

    generator = PlanGenerator.from_config(config, assistant=assistant)
    request = PlanRequest(
        issue=issue,
        user_context=merge_user_context(issue.context_snapshot(), context) if with_snapshot else context,
        allow_list=AccessPolicyEngine.from_config(config.access_policies).resolve_policy(user),
    )
    result = asyncio.run(generator.generate_plan(request))
    typer.echo(json.dumps(result, indent=2))


if __name__ == "__main__":
    app()
