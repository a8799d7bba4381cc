"""Typer CLI — ``insight serve``, ``onboard``, ``advise``, ``render``, ``templates`` and ``validate``."""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path

import typer
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.table import Table

from insight.config import load_config
from insight.errors import AppError

# Load .env file from project root (if it exists)
load_dotenv()

app = typer.Typer(
    name="insight",
    help="Insight Assistant — onboard projects and generate advice reports.",
    no_args_is_help=True,
)
console = Console()


def _setup_logging(verbose: bool, level_name: str = "INFO") -> None:
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every HTTP request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load_cfg(config: Path | None):
    try:
        return load_config(config)
    except (FileNotFoundError, ValueError, PydanticValidationError) as exc:
        console.print(f"[red]Config validation failed:[/] {exc}")
        raise typer.Exit(code=1)


def _load_project(path: Path):
    """Read a YAML or JSON project file into a ProjectPayload."""
    from insight.schemas.project import ProjectPayload

    if not path.exists():
        console.print(f"[red]Project file not found:[/] {path}")
        raise typer.Exit(code=1)
    raw = yaml.safe_load(path.read_text())  # JSON is valid YAML
    if not isinstance(raw, dict):
        console.print(f"[red]Project file must contain a mapping, got {type(raw).__name__}[/]")
        raise typer.Exit(code=1)
    try:
        return ProjectPayload.model_validate(raw)
    except PydanticValidationError as exc:
        console.print(f"[red]Invalid project file:[/] {exc}")
        raise typer.Exit(code=1)


@app.command()
def serve(
    config: Path = typer.Option(None, "--config", "-c", help="Optional YAML config overlay."),
    host: str = typer.Option(None, "--host", help="Bind address (defaults to config)."),
    port: int = typer.Option(None, "--port", "-p", help="Port (defaults to config / $PORT)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from insight.api.app import create_app

    cfg = _load_cfg(config)
    _setup_logging(verbose, cfg.log_level)
    if not cfg.llm.api_key:
        console.print("[yellow]No LLM API key configured — every agent will use its heuristics.[/]")

    uvicorn.run(
        create_app(cfg),
        host=host or cfg.server.host,
        port=port or cfg.server.port,
        log_level="debug" if verbose else cfg.log_level.lower(),
    )


@app.command()
def onboard(
    config: Path = typer.Option(None, "--config", "-c", help="Optional YAML config overlay."),
    category: str = typer.Option(None, "--category", help="Project category hint."),
    output: Path = typer.Option(None, "--output", "-o", help="Generate advice into this directory once onboarding completes."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Use heuristics only (no LLM calls)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Describe a project interactively until it is complete and valid."""
    cfg = _load_cfg(config)
    _setup_logging(verbose, cfg.log_level)
    if dry_run:
        console.print("[yellow]DRY-RUN mode — no API calls will be made.[/]\n")

    try:
        asyncio.run(_run_onboarding(cfg, category=category, output=output, dry_run=dry_run))
    except AppError as exc:
        console.print(f"[red]{exc.code}:[/] {exc.message}")
        raise typer.Exit(code=1)


async def _run_onboarding(cfg, *, category: str | None, output: Path | None, dry_run: bool) -> None:
    from insight.services import build_services
    from insight.shared.progress import ask_user

    services = build_services(cfg, dry_run=dry_run)

    answer = await ask_user("Tell me about your project")
    if not answer:
        console.print("[red]No project description given.[/]")
        raise typer.Exit(code=1)

    started = await services.onboarding.start(answer, category)
    console.print(f"[dim]Session {started.session_id} · template {started.template_id}[/]")
    session_id, question, state = started.session_id, started.next_question, started.current_state

    while True:
        if question:
            console.print(f"\n[bold]{question}[/]")
        answer = await ask_user("Your answer")
        if answer is None:
            console.print("[yellow]Onboarding paused. The session is kept in memory for this process only.[/]")
            return
        turn = await services.onboarding.resume(session_id, answer, state)
        state = turn.current_state
        question = turn.next_question
        if turn.is_complete and turn.project is not None:
            break

    project = turn.project
    console.print(f"\n[green]Project saved:[/] {project.project_name} ({turn.project_id})")
    console.print(f"  Category: {project.category.value}")
    console.print(f"  Owner:    {project.owner.name}")
    for goal in project.goals:
        console.print(f"  - [{goal.priority.value}] {goal.description}")

    if output is not None:
        await _generate_and_write(services, turn.project_id, None, output)


@app.command()
def advise(
    project: Path = typer.Option(..., "--project", "-p", help="Project file (YAML or JSON)."),
    config: Path = typer.Option(None, "--config", "-c", help="Optional YAML config overlay."),
    output: Path = typer.Option(Path("output"), "--output", "-o", help="Directory for report files."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Use heuristics only (no LLM calls)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Generate an insight report for a project file.

    Example:

        insight advise --project examples/my-project.yml --output ./output
    """
    cfg = _load_cfg(config)
    _setup_logging(verbose, cfg.log_level)
    payload = _load_project(project)

    if dry_run:
        console.print("[yellow]DRY-RUN mode — no API calls will be made.[/]\n")
    console.print(f"[bold]Generating insights for:[/] {payload.project_name}\n")

    try:
        asyncio.run(_run_advise(cfg, payload, output=output, dry_run=dry_run))
    except AppError as exc:
        console.print(f"[red]{exc.code}:[/] {exc.message}")
        raise typer.Exit(code=1)


async def _run_advise(cfg, payload, *, output: Path, dry_run: bool) -> None:
    from insight.services import build_services

    services = build_services(cfg, dry_run=dry_run)
    project_id = f"cli-{uuid.uuid4().hex[:8]}"
    await _generate_and_write(services, project_id, payload, output)


async def _generate_and_write(services, project_id: str, payload, out_dir: Path) -> None:
    from insight.shared.progress import FlowProgress

    with FlowProgress() as progress:
        progress.print_phase("Advisory flow")
        try:
            report = await services.advisory.generate_insights(
                project_id, payload, on_stage=progress.start_stage,
            )
        except AppError as exc:
            progress.fail_current(exc.message)
            raise
        progress.finish()

    out_dir.mkdir(parents=True, exist_ok=True)
    json_path = out_dir / "report.json"
    json_path.write_text(report.model_dump_json(indent=2))
    console.print(f"\n[green]Report data written to:[/] {json_path}")
    _write_renders(report, out_dir)

    console.print(f"\n[bold]{report.summary.headline}[/]")
    console.print(
        f"  {len(report.recommendations)} recommendations · {len(report.risks)} risks · "
        f"{len(report.action_plan)} actions · confidence {report.summary.confidence:.0%}"
    )


def _write_renders(report, out_dir: Path) -> None:
    from insight.output.html import render_html_report
    from insight.output.markdown import render_markdown_report

    md_path = out_dir / "insight-report.md"
    md_path.write_text(render_markdown_report(report))
    console.print(f"[green]Markdown report written to:[/] {md_path}")

    html_path = out_dir / "insight-report.html"
    html_path.write_text(render_html_report(report))
    console.print(f"[green]HTML report written to:[/] {html_path}")


@app.command()
def render(
    output: Path = typer.Option(..., "--output", "-o", help="Output directory from a previous run (must contain report.json)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Re-render the Markdown and HTML reports from a saved report.json.

    No API calls are made.
    """
    from insight.schemas.insight import InsightReport

    _setup_logging(verbose)

    report_path = output / "report.json"
    if not report_path.exists():
        console.print(f"[red]No report.json found in {output}[/]")
        console.print("Run [bold]insight advise[/] first — it saves report.json at the end.")
        raise typer.Exit(code=1)

    console.print(f"[bold]Loading report from:[/] {report_path}")
    report = InsightReport.model_validate_json(report_path.read_text())
    _write_renders(report, output)


@app.command()
def templates() -> None:
    """List the project template catalogue."""
    from insight.templates import TEMPLATES

    table = Table(title="Project templates")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Categories")
    table.add_column("Required fields", style="dim")
    for template in TEMPLATES:
        table.add_row(
            template.id,
            template.name,
            ", ".join(c.value for c in template.categories),
            ", ".join(template.required_fields),
        )
    console.print(table)


@app.command()
def validate(
    project: Path = typer.Option(..., "--project", "-p", help="Project file (YAML or JSON)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Check a project file with the validator's rules (no LLM calls)."""
    from insight.agents.validator.agent import ValidatorAgent

    _setup_logging(verbose)
    payload = _load_project(project)
    result = ValidatorAgent.heuristic_validate(payload)

    for issue in result.errors:
        colour = {"error": "red", "warning": "yellow"}.get(issue.severity, "blue")
        console.print(f"  [{colour}]{issue.severity}[/] {issue.field}: {issue.message}")
    for suggestion in result.suggestions:
        console.print(f"  [dim]suggestion:[/] {suggestion}")

    if not result.is_valid:
        console.print("[red]Project is not valid.[/]")
        raise typer.Exit(code=1)
    console.print(f"[green]Project is valid![/] (completeness {result.confidence:.0%})")
