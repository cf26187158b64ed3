"""Lore CLI: inspect dimensions and the on-disk state of bootstrap runs.

Usage: lore [--state-dir DIR] <command> [options]
"""

from __future__ import annotations

import click

from lore_shared import __version__


@click.group()
@click.version_option(__version__, prog_name="lore")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-essential output.")
@click.option(
    "--state-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="State directory, relative to the project root unless absolute "
         "(overrides LORE_STATE_DIR).",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, quiet: bool, state_dir: str | None) -> None:
    """Lore: knowledge bootstrap for a code project."""
    import logging

    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet are mutually exclusive")

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["state_dir"] = state_dir

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(message)s")
    elif quiet:
        logging.basicConfig(level=logging.WARNING)
    else:
        logging.basicConfig(level=logging.INFO, format="%(message)s")


# --- Lazy command registration (keeps `lore --help` fast) ---

def _register_commands() -> None:
    """Import and register all sub-commands."""
    from .cmd_dimensions import dimensions
    from .cmd_report import report
    from .cmd_checkpoints import checkpoints

    main.add_command(dimensions)
    main.add_command(report)
    main.add_command(checkpoints)


_register_commands()
