"""CLI entry point for rbac-policy-engine.

Invoked as::

    rbac-policy [--settings FILE] COMMAND [ARGS]...

or during development::

    python -m rbac_policy.cli.main

Commands
--------
- version    Show version information
- show       List the stored policy records
- subjects   List grant subjects and their roles
- can        Show what a subject can do in a project
- grant      Grant capabilities to a subject
- clear      Remove every record for a subject
- history    Show recent policy edits from the audit log
- validate   Parse a raw policy file and report dropped lines
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from rbac_policy.audit.logger import AuditLogger
from rbac_policy.config.envelope import PolicyConfigError
from rbac_policy.config.settings import EngineSettings, SettingsLoader
from rbac_policy.engine import PolicyEngine
from rbac_policy.policies.matcher import unique_subjects
from rbac_policy.policies.parser import parse_policies
from rbac_policy.policies.records import Capability, CapabilitySummary, Grant, RoleAssignment
from rbac_policy.policies.roles import roles_for_subject
from rbac_policy.store.base import StaleRevisionError
from rbac_policy.store.file_store import FilePolicyStore

console = Console()
err_console = Console(stderr=True)

_DEFAULT_SETTINGS = Path("rbac-settings.yaml")


def _load_settings(settings_path: str | None, store_path: str | None) -> EngineSettings:
    loader = SettingsLoader()
    path = Path(settings_path) if settings_path else _DEFAULT_SETTINGS
    try:
        settings = loader.load(path) if path.exists() else loader.defaults()
    except PolicyConfigError as exc:
        err_console.print(f"[red]Invalid settings:[/red] {exc}")
        sys.exit(1)
    if store_path:
        settings = settings.model_copy(update={"store_path": Path(store_path)})
    return settings


def _engine(ctx: click.Context) -> PolicyEngine:
    settings: EngineSettings = ctx.obj["settings"]
    return PolicyEngine(FilePolicyStore(settings.store_path), settings)


def _config_error(exc: PolicyConfigError) -> NoReturn:
    err_console.print(f"[red]Invalid RBAC config:[/red] {exc}")
    sys.exit(1)


def _conflict(exc: StaleRevisionError) -> NoReturn:
    err_console.print(f"[red]Conflict:[/red] {exc}")
    sys.exit(2)


def _summary_text(summary: CapabilitySummary) -> str:
    if not summary.has_any_access:
        return "[dim]No access[/dim]"
    if summary.is_full_access:
        return "[bold green]Full access[/bold green]"
    return ", ".join(summary.labels())


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="rbac-policy-engine")
@click.option(
    "--settings",
    "-s",
    "settings_path",
    default=None,
    type=click.Path(),
    help=f"Engine settings YAML (default: {_DEFAULT_SETTINGS}).",
)
@click.option(
    "--store",
    "store_path",
    default=None,
    type=click.Path(),
    help="RBAC config envelope file; overrides store_path from settings.",
)
@click.pass_context
def cli(ctx: click.Context, settings_path: str | None, store_path: str | None) -> None:
    """RBAC policy CLI: inspect and edit p/g policy grants."""
    ctx.ensure_object(dict)
    ctx.obj["settings"] = _load_settings(settings_path, store_path)


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from rbac_policy import __version__

    console.print(
        Panel(
            f"[bold]rbac-policy-engine[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Policy parsing, matching and capability summaries for p/g RBAC policy.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# show / subjects
# ---------------------------------------------------------------------------


@cli.command(name="show")
@click.pass_context
def show_command(ctx: click.Context) -> None:
    """List the stored policy records."""
    try:
        collection = _engine(ctx).load()
    except PolicyConfigError as exc:
        _config_error(exc)

    if not collection.records:
        console.print("[yellow]No policy records found.[/yellow]")
        return

    table = Table(title="Policy Records", box=box.SIMPLE)
    table.add_column("Type", style="dim")
    table.add_column("Subject", style="cyan")
    table.add_column("Resource")
    table.add_column("Action", style="magenta")
    table.add_column("Object")
    table.add_column("Effect / Role")
    for record in collection.records:
        if isinstance(record, Grant):
            effect = record.effect_token
            style = "green" if record.is_allow else "red"
            table.add_row(
                "p",
                record.subject,
                record.resource,
                record.action,
                record.object,
                f"[{style}]{effect}[/{style}]",
            )
        else:
            table.add_row("g", record.subject, "", "", "", record.role)
    console.print(table)
    if collection.default_role:
        console.print(f"  Default role: [cyan]{collection.default_role}[/cyan]")


@cli.command(name="subjects")
@click.pass_context
def subjects_command(ctx: click.Context) -> None:
    """List grant subjects and their role memberships."""
    try:
        collection = _engine(ctx).load()
    except PolicyConfigError as exc:
        _config_error(exc)
    subjects = unique_subjects(collection.records)
    members = sorted({r.subject for r in collection.role_assignments} - set(subjects))

    if not subjects and not members:
        console.print("[yellow]No subjects found.[/yellow]")
        return

    table = Table(title="Subjects", box=box.SIMPLE)
    table.add_column("Subject", style="cyan")
    table.add_column("Roles")
    for subject in subjects + members:
        table.add_row(subject, ", ".join(roles_for_subject(collection.records, subject)))
    console.print(table)


# ---------------------------------------------------------------------------
# can
# ---------------------------------------------------------------------------


@cli.command(name="can")
@click.argument("subject")
@click.option("--project", "-p", required=True, help="Project name, or * for all projects.")
@click.option("--app", "-a", default="*", show_default=True, help="Application name.")
@click.pass_context
def can_command(ctx: click.Context, subject: str, project: str, app: str) -> None:
    """Show what SUBJECT can do in a project (or to one app)."""
    engine = _engine(ctx)
    try:
        summary = engine.capabilities(subject, project, app)
        blanket = engine.wildcard_only_capabilities(subject)
    except PolicyConfigError as exc:
        _config_error(exc)
    additional = summary.additional_to(blanket)

    console.print(
        Panel(_summary_text(summary), title=f"{subject} on {project}/{app}", border_style="blue")
    )
    if blanket.has_any_access and additional.has_any_access:
        console.print(
            f"  Beyond all-projects grants: [cyan]{', '.join(additional.labels())}[/cyan]"
        )

    table = Table(box=box.SIMPLE)
    table.add_column("Capability", style="cyan")
    table.add_column("Allowed")
    for capability in Capability:
        allowed = summary.has(capability)
        table.add_row(capability.value, "[green]yes[/green]" if allowed else "[red]no[/red]")
    console.print(table)


# ---------------------------------------------------------------------------
# grant / clear
# ---------------------------------------------------------------------------


@cli.command(name="grant")
@click.argument("subject")
@click.option("--project", "-p", required=True, help="Project name, or * for all projects.")
@click.option("--app", "-a", default="*", show_default=True, help="Application name.")
@click.option("--view", is_flag=True, help="Grant view (get).")
@click.option("--deploy", is_flag=True, help="Grant deploy (sync).")
@click.option("--rollback", is_flag=True, help="Grant rollback (action/*).")
@click.option("--delete", is_flag=True, help="Grant delete.")
@click.option(
    "--replace",
    is_flag=True,
    help="Replace the subject's existing grants for the project instead of adding.",
)
@click.pass_context
def grant_command(
    ctx: click.Context,
    subject: str,
    project: str,
    app: str,
    view: bool,
    deploy: bool,
    rollback: bool,
    delete: bool,
    replace: bool,
) -> None:
    """Grant capabilities on a project (or app) to SUBJECT."""
    chosen = [
        capability
        for capability, flag in (
            (Capability.VIEW, view),
            (Capability.DEPLOY, deploy),
            (Capability.ROLLBACK, rollback),
            (Capability.DELETE, delete),
        )
        if flag
    ]
    if not chosen and not replace:
        err_console.print("[red]Select at least one of --view/--deploy/--rollback/--delete.[/red]")
        sys.exit(1)

    try:
        stored = _engine(ctx).grant(subject, project, chosen, app=app, replace=replace)
    except PolicyConfigError as exc:
        _config_error(exc)
    except ValueError as exc:
        err_console.print(f"[red]{exc}[/red]")
        sys.exit(1)
    except StaleRevisionError as exc:
        _conflict(exc)

    verb = "Replaced" if replace else "Added"
    console.print(
        f"[green]{verb}[/green] {len(chosen)} grant(s) for [bold]{subject}[/bold] "
        f"(revision [dim]{stored.revision[:12]}[/dim])"
    )


@cli.command(name="clear")
@click.argument("subject")
@click.pass_context
def clear_command(ctx: click.Context, subject: str) -> None:
    """Remove every grant and role assignment for SUBJECT."""
    try:
        stored = _engine(ctx).clear_subject(subject)
    except PolicyConfigError as exc:
        _config_error(exc)
    except StaleRevisionError as exc:
        _conflict(exc)
    console.print(
        f"[green]Cleared[/green] [bold]{subject}[/bold] (revision [dim]{stored.revision[:12]}[/dim])"
    )


# ---------------------------------------------------------------------------
# history
# ---------------------------------------------------------------------------


@cli.command(name="history")
@click.option("--subject", default=None, help="Only edits concerning this subject.")
@click.option("--limit", "-n", default=20, show_default=True, help="Most recent N edits.")
@click.pass_context
def history_command(ctx: click.Context, subject: str | None, limit: int) -> None:
    """Show recent policy edits from the audit log."""
    settings: EngineSettings = ctx.obj["settings"]
    records = AuditLogger(settings.audit_log_path).history(subject=subject, limit=limit)
    if not records:
        console.print("[yellow]No policy edits recorded.[/yellow]")
        return

    table = Table(title="Policy Edits", box=box.SIMPLE)
    table.add_column("Time", style="dim")
    table.add_column("Event", style="cyan", no_wrap=True)
    table.add_column("Subject")
    table.add_column("Records")
    table.add_column("Revision", style="dim")
    for record in records:
        table.add_row(
            str(record.get("timestamp", ""))[:19],
            str(record.get("event", "")),
            str(record.get("subject") or "-"),
            f"{record.get('records_before')} -> {record.get('records_after')}",
            str(record.get("revision", ""))[:12],
        )
    console.print(table)


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


@cli.command(name="validate")
@click.argument("policy_file", type=click.Path(exists=True, dir_okay=False))
def validate_command(policy_file: str) -> None:
    """Parse a raw policy file and report kept and dropped lines."""
    text = Path(policy_file).read_text(encoding="utf-8")
    records = parse_policies(text)
    candidate_lines = [
        line.strip()
        for line in text.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]
    dropped = len(candidate_lines) - len(records)
    grants = sum(1 for r in records if isinstance(r, Grant))
    roles = sum(1 for r in records if isinstance(r, RoleAssignment))

    console.print(f"  Grants: [cyan]{grants}[/cyan]")
    console.print(f"  Role assignments: [cyan]{roles}[/cyan]")
    if dropped:
        console.print(f"  [yellow]Dropped malformed lines: {dropped}[/yellow]")
        sys.exit(1)
    console.print("[green]Policy is well-formed.[/green]")


if __name__ == "__main__":
    cli()
