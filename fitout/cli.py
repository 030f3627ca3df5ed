"""Fitout CLI - database setup, checks and exports.

Commands:
- init: Initialize database schema
- check: Run startup validations
- create-admin: Create or update an admin login
- stats: Show dashboard statistics
- export-submission: Write a submission's PDFs to disk
- web serve: Run the API server
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy import select

from fitout.config import get_config
from fitout.db.connection import close_db, get_session, init_db
from fitout.db.models import AdminUserModel, UnitModel
from fitout.reporting.dashboard_metrics import compute_dashboard_metrics
from fitout.reporting.pdf_export import EXPORT_TYPES, export_submission
from fitout.startup_validation import StartupValidationError, run_all_validations
from fitout.storage.uploads import resolve_public_path
from fitout.submissions.service import get_submission, scheme_for_submission
from fitout.units.credentials import hash_password

app = typer.Typer(
    name="fitout",
    help="Fitout Portal - apartment fit-out selections",
    no_args_is_help=True,
)

web_cli = typer.Typer(help="Web UI / API")
app.add_typer(web_cli, name="web")

console = Console()


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")
    if drop:
        console.print("[yellow]Dropping existing tables...[/yellow]")

    async def _init():
        await init_db(drop=drop)
        await close_db()

    asyncio.run(_init())
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command()
def check():
    """Run startup validations (database, upload directory, pricing)."""

    async def _check():
        try:
            async with get_session() as session:
                await run_all_validations(session)
        finally:
            await close_db()

    try:
        asyncio.run(_check())
    except StartupValidationError as e:
        console.print(f"[bold red]✗[/bold red] {e}")
        raise typer.Exit(code=1)
    console.print("[bold green]✓[/bold green] All startup validations passed")


@app.command(name="create-admin")
def create_admin(
    username: str = typer.Argument(..., help="Admin username"),
    password: str = typer.Option(
        ..., "--password", prompt=True, hide_input=True, confirmation_prompt=True
    ),
):
    """Create an admin login, or reset the password of an existing one."""
    username = username.strip()
    if not username:
        raise typer.BadParameter("Username cannot be empty")

    async def _create() -> bool:
        try:
            async with get_session() as session:
                result = await session.execute(
                    select(AdminUserModel).where(AdminUserModel.username == username)
                )
                admin = result.scalar_one_or_none()
                created = admin is None
                if created:
                    admin = AdminUserModel(username=username, password_hash="")
                    session.add(admin)
                admin.password_hash = hash_password(password)
                admin.is_active = True
                return created
        finally:
            await close_db()

    created = asyncio.run(_create())
    action = "Created" if created else "Updated"
    console.print(f"[bold green]✓[/bold green] {action} admin [cyan]{username}[/cyan]")


@app.command()
def stats():
    """Show dashboard statistics."""

    async def _stats():
        try:
            async with get_session() as session:
                return await compute_dashboard_metrics(session)
        finally:
            await close_db()

    metrics = asyncio.run(_stats())

    table = Table(title="Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")

    table.add_row("Projects", str(metrics.total_projects))
    table.add_row("Active Projects", str(metrics.active_projects))
    table.add_row("Completed Projects", str(metrics.completed_projects))
    table.add_row("Units", str(metrics.total_units))
    table.add_row("Units With Submissions", str(metrics.units_with_submissions))
    table.add_row("Submissions", str(metrics.total_submissions))
    table.add_row("Submitted", str(metrics.submitted_count))
    table.add_row("Drafts", str(metrics.draft_count))
    table.add_row("Avg Upgrade Value", f"${metrics.avg_upgrade_value:,}")
    console.print(table)

    if metrics.recent_submissions:
        recent = Table(title="Recent Submissions")
        recent.add_column("Unit", style="cyan")
        recent.add_column("Project")
        recent.add_column("Status")
        for row in metrics.recent_submissions:
            recent.add_row(
                str(row.get("unit_number", "")),
                str(row.get("project_name", "")),
                str(row.get("status", "")),
            )
        console.print(recent)


@app.command(name="export-submission")
def export_submission_cmd(
    submission_id: str = typer.Argument(..., help="Submission ID"),
    export_types: list[str] = typer.Option(
        list(EXPORT_TYPES), "--type", "-t", help="finishes, upgrades or floorplan (repeatable)"
    ),
    output: Path = typer.Option(Path("."), "--out", "-o", help="Output file or directory"),
):
    """Write a submission's PDFs (zip for several documents)."""
    try:
        s_uuid = UUID(submission_id)
    except ValueError:
        raise typer.BadParameter("Invalid submission ID format")
    config = get_config()

    async def _export():
        try:
            async with get_session() as session:
                submission = await get_submission(session, s_uuid)
                scheme = await scheme_for_submission(session, submission)
                floor_plan_path = None
                if submission.unit_id:
                    unit = await session.get(UnitModel, submission.unit_id)
                    if unit is not None:
                        floor_plan_path = resolve_public_path(
                            config.portal.upload_dir, unit.floor_plan_url
                        )
                return export_submission(
                    submission,
                    scheme=scheme,
                    floor_plan_path=floor_plan_path,
                    export_types=export_types,
                    gst_rate=config.pricing.gst_rate,
                    gst_included=config.pricing.gst_included,
                    categories=config.portal.floor_plan_categories,
                )
        finally:
            await close_db()

    try:
        file_name, _, content = asyncio.run(_export())
    except (LookupError, ValueError) as e:
        console.print(f"[bold red]✗[/bold red] {e}")
        raise typer.Exit(code=1)

    target = output / file_name if output.is_dir() else output
    target.write_bytes(content)
    console.print(f"[bold green]✓[/bold green] Wrote {target} ({len(content):,} bytes)")


@web_cli.command("serve")
def web_serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8000, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the FastAPI admin API and client portal."""
    import uvicorn

    typer.echo(f"Starting Fitout Portal on http://{host}:{port}")
    uvicorn.run("fitout.web.app:app", host=host, port=port, reload=reload, workers=1)


if __name__ == "__main__":
    app()
