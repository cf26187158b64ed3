"""lore report: show the summary of the last bootstrap run."""

from __future__ import annotations

from typing import Optional

import click


@click.command()
@click.argument("project_root", required=False)
@click.option("--json", "as_json", is_flag=True, help="Print the raw report JSON.")
@click.pass_context
def report(ctx: click.Context, project_root: Optional[str], as_json: bool) -> None:
    """Show the last run's report for PROJECT_ROOT (default: cwd)."""
    import json

    from rich.table import Table

    from ._common import console, print_header, resolve_project, status_style, store_for

    root = resolve_project(project_root)
    store = store_for(root, (ctx.obj or {}).get("state_dir"))
    data = store.read_report()
    if data is None:
        raise click.ClickException(f"No bootstrap report found at {store.report_path}")

    if as_json:
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return

    totals = data.get("totals") or {}
    usage = totals.get("tokenUsage") or {}
    print_header(f"Bootstrap report: {root.name}")
    console.print(
        f"  Session: {data.get('sessionId', '?')}  Mode: {data.get('mode', '?')}"
        f"  Duration: {(data.get('durationMs') or 0) / 1000:.1f}s"
    )
    console.print(
        f"  Candidates: {totals.get('candidates', 0)}  Failed: {totals.get('failed', 0)}"
        f"  Errors: {totals.get('errors', 0)}  Skills: {totals.get('skills', 0)}"
        f"  Tool calls: {totals.get('toolCalls', 0)}"
        f"  Tokens: {usage.get('input', 0)} in / {usage.get('output', 0)} out"
    )
    if data.get("superseded"):
        console.print("  [yellow]Run was superseded before finishing[/yellow]")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Dimension", min_width=20)
    table.add_column("Status", justify="center")
    table.add_column("Signals", justify="right")
    table.add_column("Created", justify="right")
    table.add_column("Fallback", justify="right")
    table.add_column("Time", justify="right")

    for dim_id, stats in (data.get("dimensions") or {}).items():
        status = str(stats.get("status") or "")
        color = status_style(status)
        table.add_row(
            dim_id,
            f"[{color}]{status}[/{color}]",
            str(stats.get("signalCount", 0)),
            str(stats.get("candidateCount", 0)),
            str(stats.get("fallbackCount", 0)),
            f"{(stats.get('durationMs') or 0) / 1000:.1f}s",
        )
    console.print(table)

    errors = (data.get("candidates") or {}).get("errors") or []
    if errors:
        print_header("Errors")
        for err in errors:
            sub = f"/{err['subTopic']}" if err.get("subTopic") else ""
            console.print(f"  [red]{err.get('dimension')}{sub}[/red]: {err.get('error')}")
