"""TenderCalc CLI.

Commands:
- init: Initialize database schema
- normalize: Show how extracted cells normalize into amounts or labels
- assess: Build the assessment for a JSON project snapshot
- matches: List effective (or all) matches of a snapshot
- duplicate-exceptions: Report exceptions recorded twice for one response item
- web serve: Run the HTTP API
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from tendercalc.canonical.normalizer import normalize_value
from tendercalc.config import NormalizerConfig
from tendercalc.core.errors import TenderCalcError
from tendercalc.reporting.assessment import find_duplicate_exceptions, load_assessment
from tendercalc.reporting.csv_export import export_line_items_csv
from tendercalc.reporting.excel_export import generate_assessment_excel
from tendercalc.reporting.models import AssessmentPayload
from tendercalc.review.repository import list_match_views
from tendercalc.snapshot import ProjectSnapshot, load_snapshot

app = typer.Typer(
    name="tendercalc",
    help="TenderCalc - Tender matching and cross-contractor assessment",
    no_args_is_help=True,
)

web_cli = typer.Typer(help="HTTP API")
app.add_typer(web_cli, name="web")

console = Console()


def _load(snapshot_path: Path) -> ProjectSnapshot:
    try:
        return load_snapshot(snapshot_path)
    except (FileNotFoundError, TenderCalcError) as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1) from exc


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    from tendercalc.config import get_config
    from tendercalc.db.connection import close_db, init_db

    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")
    if drop:
        console.print("[yellow]Dropping existing tables...[/yellow]")

    async def _init():
        try:
            await init_db(drop=drop)
        finally:
            await close_db()

    asyncio.run(_init())
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command()
def normalize(
    values: list[str] = typer.Argument(..., help="Raw cell values, e.g. '$1,234.50' 'Included'"),
):
    """Normalize extracted cells into amounts or labels."""
    normalizer = NormalizerConfig()

    table = Table(title="Normalized values")
    table.add_column("Raw", style="cyan")
    table.add_column("Amount", justify="right", style="green")
    table.add_column("Label", style="magenta")

    for raw in values:
        value = normalize_value(
            raw,
            currency_symbols=normalizer.currency_symbols,
            currency_codes=normalizer.currency_codes,
        )
        table.add_row(
            repr(raw),
            f"{value.amount:,.2f}" if value.amount is not None else "",
            value.label or ("(empty)" if value.is_empty else ""),
        )

    console.print(table)


def _print_assessment(payload: AssessmentPayload) -> None:
    currency = payload.project.currency

    console.print(f"\n[bold]Assessment:[/bold] {payload.project.name} ({payload.project.status.value})")

    totals = Table(title="Contractor totals")
    totals.add_column("Contractor", style="cyan")
    totals.add_column(f"Total ({currency})", justify="right", style="green")
    for contractor in payload.contractors:
        totals.add_row(contractor.name, f"{contractor.total_value:,.2f}")
    console.print(totals)

    sections = Table(title="Sections")
    sections.add_column("Code", style="cyan")
    sections.add_column("Section")
    sections.add_column("ITT amount", justify="right")
    sections.add_column("Exceptions", justify="right")
    for contractor in payload.contractors:
        sections.add_column(contractor.name, justify="right", style="green")

    for section in payload.sections:
        row = [
            section.code,
            section.name,
            f"{section.total_itt_amount:,.2f}",
            str(section.exception_count),
        ]
        for contractor in payload.contractors:
            total = section.totals_by_contractor.get(contractor.contractor_id)
            row.append(f"{total:,.2f}" if total is not None else "-")
        sections.add_row(*row)
    console.print(sections)

    if payload.anomalies:
        console.print(f"\n[yellow]⚠[/yellow] {len(payload.anomalies)} inconsistent matches skipped")
        for anomaly in payload.anomalies[:5]:
            console.print(f"  {anomaly.match_id}: {anomaly.reason}", style="dim")


@app.command()
def assess(
    snapshot: Path = typer.Argument(..., help="Project snapshot (JSON)"),
    xlsx: Path | None = typer.Option(None, "--xlsx", help="Write Excel workbook"),
    csv_out: Path | None = typer.Option(None, "--csv", help="Write line-item CSV"),
    json_out: Path | None = typer.Option(None, "--json", help="Write assessment JSON"),
):
    """Build the cross-contractor assessment for a snapshot."""
    data = _load(snapshot)
    repos = data.to_repositories()

    try:
        payload = asyncio.run(load_assessment(repos, data.project.project_id))
    except TenderCalcError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _print_assessment(payload)

    if xlsx:
        xlsx.write_bytes(generate_assessment_excel(payload).getvalue())
        console.print(f"[green]✓[/green] Workbook saved to: {xlsx}")
    if csv_out:
        with csv_out.open("w", encoding="utf-8", newline="") as handle:
            for chunk in export_line_items_csv(payload):
                handle.write(chunk)
        console.print(f"[green]✓[/green] CSV saved to: {csv_out}")
    if json_out:
        json_out.write_text(payload.model_dump_json(indent=2), encoding="utf-8")
        console.print(f"[green]✓[/green] JSON saved to: {json_out}")


@app.command()
def matches(
    snapshot: Path = typer.Argument(..., help="Project snapshot (JSON)"),
    status: str = typer.Option("all", "--status", help="all, suggested, accepted, rejected, manual"),
    contractor: str | None = typer.Option(None, "--contractor", help="Contractor ID"),
    include_stale: bool = typer.Option(
        False, "--include-stale", help="Include stale suggestions and superseded matches"
    ),
):
    """List the matches a reviewer would see."""
    data = _load(snapshot)
    repos = data.to_repositories()

    try:
        views = asyncio.run(
            list_match_views(
                repos,
                data.project.project_id,
                status=status,
                contractor_id=contractor,
                include_stale=include_stale,
            )
        )
    except TenderCalcError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if not views:
        console.print("[yellow]No matches found[/yellow]")
        return

    table = Table(title=f"Matches ({len(views)})")
    table.add_column("Item", style="cyan")
    table.add_column("ITT description")
    table.add_column("Contractor")
    table.add_column("Response")
    table.add_column("Status")
    table.add_column("Confidence", justify="right")
    if include_stale:
        table.add_column("Visibility", style="dim")

    for view in views:
        row = [
            view.itt_item_code or "?",
            view.itt_description or "(missing)",
            view.contractor_name,
            view.response_description or "(missing)",
            view.status.value,
            f"{view.confidence:.0%}",
        ]
        if include_stale:
            row.append(view.visibility.value)
        table.add_row(*row)

    console.print(table)


@app.command(name="duplicate-exceptions")
def duplicate_exceptions(
    snapshot: Path = typer.Argument(..., help="Project snapshot (JSON)"),
):
    """Report response items that carry more than one exception record."""
    data = _load(snapshot)
    duplicates = find_duplicate_exceptions(data.exceptions)

    if not duplicates:
        console.print("[green]✓[/green] No duplicate exceptions")
        return

    table = Table(title="Duplicate exceptions")
    table.add_column("Response item", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Exception IDs", style="dim")
    for response_item_id, group in duplicates.items():
        table.add_row(
            response_item_id,
            str(len(group)),
            ", ".join(exception.exception_id for exception in group),
        )

    console.print(table)
    console.print(
        f"[yellow]⚠[/yellow] {sum(len(g) - 1 for g in duplicates.values())} redundant records"
    )


@web_cli.command("serve")
def web_serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8001, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the FastAPI app."""
    import uvicorn

    typer.echo(f"Starting TenderCalc API on http://{host}:{port}")
    uvicorn.run("tendercalc.web.app:app", host=host, port=port, reload=reload, workers=1)


if __name__ == "__main__":
    app()
