"""Command-line interface for SF-CICD."""

import functools
import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from sf_cicd import __version__
from sf_cicd.ai import Failure, RetryOrchestrator, create_adapter, credentials_from_env
from sf_cicd.ai.retry import DEFAULT_BASE_DELAY, DEFAULT_MAX_ATTEMPTS
from sf_cicd.config import (
    DEFAULT_AI_CONFIG_PATH,
    DEFAULT_CURSOR_API_URL,
    DEFAULT_PROMPT_TEMPLATE_PATH,
    ReviewConfig,
    Settings,
    resolve_settings,
)
from sf_cicd.costs import estimate_cost
from sf_cicd.errors import SFCICDError
from sf_cicd.logging import init_logger
from sf_cicd.org import AuthMethod, OrgAuthenticator, OrgCredentials, OrgEnvironment
from sf_cicd.review import ApexReviewer, GateStatus, Severity

console = Console()


def _banner(title: str, style: str = "blue") -> None:
    console.print(f"[{style}]{'═' * 48}[/{style}]")
    console.print(f"[{style}]  {title}[/{style}]")
    console.print(f"[{style}]{'═' * 48}[/{style}]")


def _log_section(ctx: click.Context, title: str) -> None:
    run_logger = ctx.obj.get("logger")
    if run_logger:
        run_logger.section(title)


def ai_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command that talks to an AI provider."""
    options = [
        click.option(
            "--config",
            "config_path",
            type=click.Path(dir_okay=False, path_type=Path),
            default=DEFAULT_AI_CONFIG_PATH,
            envvar="AI_CONFIG_FILE",
            show_default=True,
            help="AI configuration file (missing file means defaults); the options below override it",
        ),
        click.option("--provider", envvar="AI_PROVIDER", help="AI provider (anthropic, openai, cursor)"),
        click.option("--model", envvar="AI_MODEL", help="Model name"),
        click.option("--temperature", type=float, envvar="AI_TEMPERATURE", help="Sampling temperature (0-2)"),
        click.option("--max-tokens", type=int, envvar="AI_MAX_TOKENS", help="Maximum tokens in response"),
        click.option(
            "--cursor-api-url",
            envvar="CURSOR_API_URL",
            default=DEFAULT_CURSOR_API_URL,
            show_default=True,
            help="Base URL for the Cursor API",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _resolve_ai_settings(
    ctx: click.Context,
    config_path: Path,
    provider: str | None,
    model: str | None,
    temperature: float | None,
    max_tokens: int | None,
) -> Settings:
    settings = resolve_settings(config_path)
    try:
        return settings.with_overrides(
            provider=provider,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except ValidationError as e:
        console.print("[red]Error: invalid AI settings[/red]")
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            console.print(f"  {field}: {error['msg']}")
        ctx.exit(1)


def _build_orchestrator(settings: Settings, cursor_api_url: str) -> RetryOrchestrator:
    adapter = create_adapter(
        settings,
        credentials_from_env(),
        cursor_api_url=cursor_api_url,
    )
    return RetryOrchestrator(adapter)


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Report pipeline errors in red and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except SFCICDError as e:
            console.print(f"[red]✗ Error: {e}[/red]")
            sys.exit(1)

    return wrapper


@click.group()
@click.version_option(version=__version__, prog_name="sf-cicd")
@click.option(
    "--logs-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="SF_CICD_LOGS_DIR",
    help="Write a run log file into this directory",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, logs_dir: Path | None, verbose: bool) -> None:
    """SF-CICD: Salesforce CI/CD helpers with AI-powered code review."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    if logs_dir:
        run_logger = init_logger(logs_dir, verbose=verbose)
        ctx.obj["logger"] = run_logger
        ctx.call_on_close(run_logger.close)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)-8s | %(message)s")


@main.command("auth")
@click.argument("environment")
@click.option(
    "--method",
    "-m",
    type=click.Choice([m.value for m in AuthMethod]),
    default=AuthMethod.SFDX_URL.value,
    show_default=True,
    help="Login flow",
)
@click.pass_context
@handle_errors
def auth(ctx: click.Context, environment: str, method: str) -> None:
    """Authenticate the sf CLI to a pipeline org.

    \b
    ENVIRONMENT is one of: dev, staging, prod (aliases accepted).
    Secrets are read from SFDX_AUTH_URL_<ENV>, SF_JWT_KEY,
    SF_CONSUMER_KEY and SF_USERNAME_<ENV>.
    """
    env = OrgEnvironment.parse(environment)
    auth_method = AuthMethod.parse(method)

    _banner("Salesforce Authentication")
    console.print(f"Environment: {env.value}")
    console.print(f"Alias: {env.alias}")
    console.print(f"Method: {auth_method.value}\n")
    _log_section(ctx, f"ORG AUTH: {env.value} ({auth_method.value})")

    authenticator = OrgAuthenticator(
        environment=env,
        credentials=OrgCredentials.from_env(env),
        verbose=ctx.obj["verbose"],
    )
    org = authenticator.authenticate(auth_method)

    table = Table(title="Connected Org Details")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Alias", org.alias)
    table.add_row("Org ID", org.org_id)
    table.add_row("Username", org.username)
    table.add_row("Instance URL", org.instance_url)
    if org.connected_status:
        table.add_row("Status", org.connected_status)
    console.print(table)

    _banner("Authentication Complete!", style="green")
    console.print("\nYou can now run Salesforce CLI commands using:")
    console.print(f"  sf <command> --target-org {org.alias}\n")


@main.command("review")
@click.argument("input_path", type=click.Path(path_type=Path))
@ai_options
@click.option(
    "--template",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_PROMPT_TEMPLATE_PATH,
    envvar="PROMPT_TEMPLATE",
    show_default=True,
    help="Review prompt template",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("review-results.json"),
    envvar="OUTPUT_FILE",
    show_default=True,
    help="Where to write the JSON results",
)
@click.option("--api-version", default="60.0", show_default=True, help="Salesforce API version for the prompt")
@click.option("--org-type", default="Sandbox", show_default=True, help="Org type for the prompt")
@click.option(
    "--raw-output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Where unparseable AI answers are saved as review_<file>.txt",
)
@click.option("--max-attempts", type=click.IntRange(min=1, max=10), default=DEFAULT_MAX_ATTEMPTS, show_default=True)
@click.option("--base-delay", type=click.FloatRange(min=0), default=DEFAULT_BASE_DELAY, show_default=True)
@click.pass_context
@handle_errors
def review(
    ctx: click.Context,
    input_path: Path,
    config_path: Path,
    provider: str | None,
    model: str | None,
    temperature: float | None,
    max_tokens: int | None,
    cursor_api_url: str,
    template: Path,
    output: Path,
    api_version: str,
    org_type: str,
    raw_output_dir: Path,
    max_attempts: int,
    base_delay: float,
) -> None:
    """Review Apex classes with AI.

    INPUT_PATH is a file listing Apex file paths (one per line) or a
    directory searched for .cls files. Exits 1 when critical issues are found.

    AI settings come from the config file; --provider/--model/--temperature/
    --max-tokens and their AI_* environment variables take precedence over it.
    """
    settings = _resolve_ai_settings(ctx, config_path, provider, model, temperature, max_tokens)

    _banner("AI-Powered Apex Code Review")
    console.print(f"Provider: {settings.provider.value} (model: {settings.model})\n")
    _log_section(ctx, f"AI REVIEW: {input_path} ({settings.provider.value}/{settings.model})")

    reviewer = ApexReviewer(
        orchestrator=_build_orchestrator(settings, cursor_api_url),
        settings=settings,
        config=ReviewConfig(
            template_path=template,
            output_file=output,
            raw_output_dir=raw_output_dir,
            api_version=api_version,
            org_type=org_type,
            max_attempts=max_attempts,
            base_delay=base_delay,
        ),
    )
    try:
        run = reviewer.run(input_path)
    finally:
        reviewer.orchestrator.adapter.close()
    summary = run.summary

    _banner("Review Summary")
    console.print(f"Files reviewed: {summary.files_reviewed}")
    console.print(f"Average score: {summary.average_score:.1f}/10\n")

    table = Table(title="Issues found")
    table.add_column("Severity", style="cyan")
    table.add_column("Count", justify="right")
    for severity in Severity:
        table.add_row(severity.value.title(), str(summary.severity_counts[severity]))
    console.print(table)

    if summary.skipped:
        console.print(f"[yellow]Skipped: {len(summary.skipped)} file(s)[/yellow]")
    console.print(
        f"Tokens: {summary.input_tokens:,} in / {summary.output_tokens:,} out "
        f"(~${summary.estimated_cost_usd})"
    )
    console.print(f"Results saved to: {output}")
    if ctx.obj.get("logger"):
        console.print(f"Log file: {ctx.obj['logger'].get_log_path()}")
    console.print()

    if summary.gate is GateStatus.BLOCKED:
        console.print("[red]✗ Critical issues found - blocking PR[/red]")
    elif summary.gate is GateStatus.WARNING:
        console.print("[yellow]⚠ High number of high-severity issues[/yellow]")
    else:
        console.print("[green]✓ No blocking issues found[/green]")

    ctx.exit(summary.exit_code)


@main.command("ask")
@click.argument("prompt_file", type=click.File("r"))
@ai_options
@click.option("--json", "as_json", is_flag=True, help="Require and print a JSON answer")
@click.option("--max-attempts", type=click.IntRange(min=1), default=DEFAULT_MAX_ATTEMPTS, show_default=True)
@click.option("--base-delay", type=click.FloatRange(min=0), default=DEFAULT_BASE_DELAY, show_default=True)
@click.pass_context
def ask(
    ctx: click.Context,
    prompt_file: Any,
    config_path: Path,
    provider: str | None,
    model: str | None,
    temperature: float | None,
    max_tokens: int | None,
    cursor_api_url: str,
    as_json: bool,
    max_attempts: int,
    base_delay: float,
) -> None:
    """Send a prompt (file or '-' for stdin) to the configured AI provider.

    AI settings come from the config file; --provider/--model/--temperature/
    --max-tokens and their AI_* environment variables take precedence over it.
    """
    settings = _resolve_ai_settings(ctx, config_path, provider, model, temperature, max_tokens)
    prompt = prompt_file.read()

    orchestrator = _build_orchestrator(settings, cursor_api_url)
    err_console = Console(stderr=True)
    err_console.print(f"[blue]→ Calling {settings.provider.value} API (model: {settings.model})...[/blue]")

    with orchestrator.adapter:
        if as_json:
            outcome = orchestrator.call_json_with_retry(prompt, settings, max_attempts, base_delay)
        else:
            outcome = orchestrator.call_with_retry(prompt, settings, max_attempts, base_delay)

    if isinstance(outcome, Failure):
        err_console.print(
            f"[red]✗ AI API call failed ({outcome.kind.value}, {outcome.attempts} attempt(s))[/red]"
        )
        err_console.print(f"[red]  {outcome.message}[/red]")
        ctx.exit(1)

    err_console.print(f"[green]✓ AI response received ({outcome.attempts} attempt(s))[/green]")
    if as_json:
        click.echo(json.dumps(outcome.data, indent=2))
    else:
        click.echo(outcome.answer)


@main.command("estimate-cost")
@click.argument("provider")
@click.argument("model")
@click.argument("input_tokens", type=click.IntRange(min=0))
@click.argument("output_tokens", type=click.IntRange(min=0))
def estimate_cost_command(provider: str, model: str, input_tokens: int, output_tokens: int) -> None:
    """Estimate the USD cost of a call from its token counts."""
    click.echo(str(estimate_cost(provider, model, input_tokens, output_tokens)))


if __name__ == "__main__":
    main()
