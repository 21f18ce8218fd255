"""autotriage CLI — all commands."""

import subprocess
from datetime import timedelta
from typing import Annotated

import tomlkit
import typer
from rich import print as rprint
from rich.table import Table

from autotriage.engine import triage_old_label
from autotriage.errors import TriageError
from autotriage.log import configure_logging
from autotriage.models import TriageReport
from autotriage.providers.base import GraphQLTransport
from autotriage.providers.dry_run import DryRunActions
from autotriage.providers.github import GitHubGraphQLClient
from autotriage.settings import CONFIG_PATH, TriageSettings, _list_profiles, get_settings

app = typer.Typer(help="autotriage: find open issues whose triage label has gone stale", no_args_is_help=True)

RuleOpt = Annotated[
    str | None,
    typer.Option("--rule", "-r", help="Rule profile name from ~/.config/autotriage/config.toml"),
]


# ---------------------------------------------------------------------------
# Client factory
# ---------------------------------------------------------------------------


def get_client(settings: TriageSettings) -> GraphQLTransport:
    try:
        return GitHubGraphQLClient(settings)
    except RuntimeError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc


def _repo_from_git_remote() -> str | None:
    """Return "owner/repo" for a GitHub origin remote in the cwd, else None."""
    result = subprocess.run(["git", "remote", "get-url", "origin"], capture_output=True, text=True)
    if result.returncode != 0 or not isinstance(result.stdout, str):
        return None
    cleaned = result.stdout.strip().removesuffix(".git")
    for prefix in ("git@github.com:", "https://github.com/", "http://github.com/"):
        if cleaned.startswith(prefix):
            path = cleaned[len(prefix) :]
            if path.count("/") == 1:
                return path
    return None


def _split_repo(repo: str | None) -> tuple[str, str]:
    repo = repo or _repo_from_git_remote()
    if not repo or repo.count("/") != 1:
        rprint("[red]No repository. Use --repo owner/name or set repo in your rule profile.[/red]")
        raise typer.Exit(1)
    owner, name = repo.split("/", 1)
    return owner, name


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_report(report: TriageReport, label: str) -> None:
    table = Table(title=f"Issues labeled {label}")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Status")
    table.add_column("Days left", justify="right")
    table.add_column("Title")
    table.add_column("URL", style="dim")

    for decision in report.decisions:
        verdict = decision.verdict
        status = "[red]eligible now[/red]" if decision.eligible_now else "waiting"
        table.add_row(str(verdict.number), status, str(decision.days_remaining), verdict.title, verdict.url)

    rprint(table)

    for verdict in report.excluded:
        rprint(f"[dim]excluded[/dim] #{verdict.number} ({verdict.excluded_by}) {verdict.url}")
    for skipped in report.skipped:
        rprint(f"[yellow]skipped[/yellow] #{skipped.number} ({skipped.reason}) {skipped.url}")

    rprint(
        f"{len(report.eligible)} eligible, {len(report.decisions) - len(report.eligible)} waiting, "
        f"{len(report.excluded)} excluded, {len(report.skipped)} skipped "
        f"[dim]({report.requests_made} request(s))[/dim]"
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("run")
def run(
    rule: RuleOpt = None,
    repo: Annotated[str | None, typer.Option("--repo", help="owner/name")] = None,
    label: Annotated[str | None, typer.Option("--label", "-l", help="Triage label to age")] = None,
    min_age_days: Annotated[
        int | None, typer.Option("--min-age-days", min=1, help="Days both the label and the last comment must reach")
    ] = None,
    exclude: Annotated[
        str | None, typer.Option("--exclude", help="Skip issues with a label containing this (case-insensitive)")
    ] = None,
    dry_run: Annotated[bool, typer.Option("--dry-run/--no-dry-run", help="Only report, never close")] = True,
) -> None:
    """Classify open issues carrying a label and report which can be closed."""
    settings = get_settings(rule=rule)
    configure_logging(settings.log_level)

    if not dry_run:
        rprint("[red]Closing issues is not implemented yet. Re-run with --dry-run.[/red]")
        raise typer.Exit(1)

    owner, name = _split_repo(repo or settings.repo)
    target_label = label or settings.label
    if not target_label:
        rprint("[red]No label. Use --label or set label in your rule profile.[/red]")
        raise typer.Exit(1)

    client = get_client(settings)
    try:
        report = triage_old_label(
            client,
            owner,
            name,
            target_label,
            timedelta(days=min_age_days or settings.minimum_age_days),
            exclude=exclude if exclude is not None else settings.exclude_label_containing,
            actions=DryRunActions(),
            page_size=settings.page_size,
            max_pages=settings.max_pages,
            min_remaining=settings.min_rate_limit_remaining,
        )
    except TriageError as exc:
        rprint(f"[red]{type(exc).__name__}: {exc}[/red]")
        raise typer.Exit(1) from exc

    render_report(report, target_label)


@app.command("set-default")
def set_default(
    rule: Annotated[str, typer.Argument(help="Rule profile name to set as default")],
) -> None:
    """Set the default rule profile in ~/.config/autotriage/config.toml."""
    if not CONFIG_PATH.exists():
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        doc = tomlkit.document()
        doc.add("default_rule", rule)
        CONFIG_PATH.write_text(tomlkit.dumps(doc))
        rprint(f'[green]✓[/green] Default rule set to "{rule}" in {CONFIG_PATH}')
        return

    doc = tomlkit.load(CONFIG_PATH.open())
    profiles = _list_profiles(doc)
    if rule not in profiles:
        rprint(f"[red]Rule '{rule}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}[/red]")
        raise typer.Exit(1)

    doc["default_rule"] = rule
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    rprint(f'[green]✓[/green] Default rule set to "{rule}" in {CONFIG_PATH}')


@app.command("config-show")
def config_show(rule: RuleOpt = None) -> None:
    """Show resolved configuration (masks credentials)."""
    settings = get_settings(rule=rule)

    def mask(val: str | None, prefix: str = "") -> str:
        if val is None:
            return "[dim](not set)[/dim]"
        if len(val) <= 5:
            return "***"
        return f"{prefix}...{val[-5:]}"

    not_set = "[dim](not set)[/dim]"
    table = Table(title="autotriage Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("default_rule", settings.default_rule or not_set)
    table.add_row(
        "github_token",
        mask(settings.github_token.get_secret_value() if settings.github_token else None, prefix="ghp_"),
    )
    table.add_row("github_auth", settings.github_auth)
    table.add_row("repo", settings.repo or not_set)
    table.add_row("label", settings.label or not_set)
    table.add_row("minimum_age_days", str(settings.minimum_age_days))
    table.add_row("exclude_label_containing", settings.exclude_label_containing or not_set)
    table.add_row("page_size", str(settings.page_size))
    table.add_row("max_pages", str(settings.max_pages))
    table.add_row("min_rate_limit_remaining", str(settings.min_rate_limit_remaining))

    rprint(table)
