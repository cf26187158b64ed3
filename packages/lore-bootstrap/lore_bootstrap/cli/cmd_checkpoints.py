"""lore checkpoints: list or clear resumable dimension checkpoints."""

from __future__ import annotations

from typing import Optional

import click


@click.command()
@click.argument("project_root", required=False)
@click.option("--clear", is_flag=True, help="Delete all checkpoints.")
@click.pass_context
def checkpoints(ctx: click.Context, project_root: Optional[str], clear: bool) -> None:
    """Show checkpoints that the next run of PROJECT_ROOT would restore."""
    import time

    from rich.table import Table

    from ._common import console, print_header, resolve_project, store_for

    root = resolve_project(project_root)
    store = store_for(root, (ctx.obj or {}).get("state_dir"))

    if clear:
        store.clear()
        console.print(f"Cleared checkpoints in {store.checkpoint_dir}")
        return

    entries = store.load()
    if not entries:
        console.print("[dim]No valid checkpoints.[/dim]")
        return

    print_header(f"Checkpoints: {store.checkpoint_dir}")
    table = Table(show_header=True, header_style="bold")
    table.add_column("Dimension", min_width=20)
    table.add_column("Session")
    table.add_column("Candidates", justify="right")
    table.add_column("Age", justify="right")

    now = time.time()
    for dim_id, cp in entries.items():
        stats = cp.get("stats") or {}
        age = now - float(cp.get("completedAt") or now)
        table.add_row(
            dim_id,
            str(cp.get("sessionId") or ""),
            str(stats.get("candidateCount", 0)),
            f"{age / 60:.0f}m",
        )
    console.print(table)
