"""Shared CLI helpers: state resolution and Rich output."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from rich.console import Console

from lore_shared.config import get_settings

from ..checkpoint import CheckpointStore

console = Console()


def print_header(title: str) -> None:
    console.print(f"\n[bold]{title}[/bold]")


def resolve_project(project_root: Optional[str]) -> Path:
    """Project root argument, defaulting to the current directory."""
    import click

    root = Path(project_root or ".").resolve()
    if not root.is_dir():
        raise click.BadParameter(f"Not a directory: {root}", param_hint="'PROJECT_ROOT'")
    return root


def store_for(project_root: Path, state_dir: Optional[str] = None) -> CheckpointStore:
    """Checkpoint store for a project, honouring a --state-dir override."""
    settings = get_settings()
    if state_dir:
        settings = settings.model_copy(update={"state_dir": state_dir})
    return CheckpointStore(
        settings.state_path(project_root),
        ttl_seconds=settings.checkpoint_ttl_seconds,
    )


def status_style(status: str) -> str:
    return {
        "complete": "green",
        "checkpoint-restored": "cyan",
        "fallback": "yellow",
        "empty": "dim",
        "skipped": "dim",
        "failed": "red",
    }.get(status, "white")
