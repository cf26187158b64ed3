"""lore dimensions: show the dimension order and output types."""

from __future__ import annotations

from typing import Optional

import click


@click.command()
@click.option(
    "--file", "dimensions_file", type=click.Path(exists=True, dir_okay=False),
    default=None, help="YAML dimension list (defaults to the built-in set).",
)
def dimensions(dimensions_file: Optional[str]) -> None:
    """List dimensions in execution order."""
    from rich.table import Table

    from ..dimensions import DEFAULT_DIMENSIONS, load_dimensions
    from ..errors import DimensionConfigError
    from ._common import console, print_header

    if dimensions_file:
        try:
            dims = load_dimensions(dimensions_file)
        except DimensionConfigError as e:
            raise click.ClickException(str(e)) from e
        print_header(f"Dimensions: {dimensions_file}")
    else:
        dims = DEFAULT_DIMENSIONS
        print_header("Dimensions (built-in)")

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Id", min_width=20)
    table.add_column("Label")
    table.add_column("Output", justify="center")
    table.add_column("Knowledge types")

    for i, dim in enumerate(dims, 1):
        table.add_row(
            str(i), dim.id, dim.label, dim.output_type, ", ".join(dim.knowledge_types),
        )
    console.print(table)
