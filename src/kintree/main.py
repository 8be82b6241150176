"""
Command line entry point.

    kintree layout tree.json            print computed positions as JSON
    kintree relate tree.json A B        name the relationship of B to A
    kintree validate tree.json          report cycles and inconsistent links
    kintree convert family.ged out.json import a GEDCOM file
    kintree plot tree.json out.png      render the layout (PNG/SVG/PDF or .dot)
"""

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Annotated

import typer

from kintree.errors import FamilyTreeFormatError
from kintree.layout import LayoutConfig, compute_layout
from kintree.models import Person, full_name
from kintree.relationships import find_relationship
from kintree.serialization import read_family_tree, write_family_tree
from kintree.validation import validate_tree

app = typer.Typer(
    name="kintree",
    help="Family tree layout and relationship finder",
    no_args_is_help=True,
)

MAX_WARNINGS_SHOWN = 10


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )


def _load(path: Path) -> list[Person]:
    try:
        return read_family_tree(path).people
    except FileNotFoundError:
        typer.echo(f"File not found: {path}")
        raise typer.Exit(1) from None
    except FamilyTreeFormatError as e:
        typer.echo(f"Invalid family tree: {e}")
        raise typer.Exit(1) from None


def _find(people: list[Person], person_id: str) -> Person:
    for p in people:
        if p.id == person_id:
            return p
    typer.echo(f"Person ID {person_id} not found")
    raise typer.Exit(1)


def _config(horizontal: float, vertical: float, spouse: float) -> LayoutConfig:
    return LayoutConfig(horizontal_spacing=horizontal, vertical_spacing=vertical, spouse_spacing=spouse)


HorizontalOption = Annotated[float, typer.Option("--horizontal-spacing", help="Gap between units")]
VerticalOption = Annotated[float, typer.Option("--vertical-spacing", help="Gap between generations")]
SpouseOption = Annotated[float, typer.Option("--spouse-spacing", help="Gap between spouses")]


@app.command()
def layout(
    tree: Annotated[Path, typer.Argument(help="Family tree JSON document")],
    auto_align: Annotated[bool, typer.Option("--auto-align", help="Ignore manual positions")] = False,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write positions back into this document")
    ] = None,
    horizontal_spacing: HorizontalOption = LayoutConfig.horizontal_spacing,
    vertical_spacing: VerticalOption = LayoutConfig.vertical_spacing,
    spouse_spacing: SpouseOption = LayoutConfig.spouse_spacing,
) -> None:
    """Compute node positions and canvas size."""
    people = _load(tree)
    result = compute_layout(people, auto_align, _config(horizontal_spacing, vertical_spacing, spouse_spacing))

    if output:
        positioned = [
            replace(p, position=result.positions[p.id]) if p.id in result.positions else p
            for p in people
        ]
        write_family_tree(output, positioned)
        typer.echo(f"Positions saved to {output}")
        return

    typer.echo(
        json.dumps(
            {
                "width": result.width,
                "height": result.height,
                "positions": {pid: {"x": pos.x, "y": pos.y} for pid, pos in result.positions.items()},
                "generations": result.generations,
            },
            indent=2,
        )
    )


@app.command()
def relate(
    tree: Annotated[Path, typer.Argument(help="Family tree JSON document")],
    person_a: Annotated[str, typer.Argument(help="ID of the person asking")],
    person_b: Annotated[str, typer.Argument(help="ID of the relative")],
) -> None:
    """Name what PERSON_B is to PERSON_A."""
    people = _load(tree)
    a = _find(people, person_a)
    b = _find(people, person_b)

    result = find_relationship(people, a, b)
    names = {p.id: full_name(p) for p in people}
    typer.echo(f"{names[b.id]} is the {result.english.lower()} of {names[a.id]}")
    typer.echo(f"  {result.tamil}")
    if result.path:
        typer.echo("  Path: " + " -> ".join(names.get(pid, pid) for pid in result.path))


@app.command()
def validate(
    tree: Annotated[Path, typer.Argument(help="Family tree JSON document")],
) -> None:
    """Check for cycles, dangling ids and one-sided links."""
    people = _load(tree)
    warnings = validate_tree(people)
    if not warnings:
        typer.echo("No validation issues found")
        return

    typer.echo(f"Found {len(warnings)} validation warnings:")
    for w in warnings[:MAX_WARNINGS_SHOWN]:
        typer.echo(f"  - {w}")
    if len(warnings) > MAX_WARNINGS_SHOWN:
        typer.echo(f"  ... and {len(warnings) - MAX_WARNINGS_SHOWN} more")
    raise typer.Exit(1)


@app.command()
def convert(
    gedcom: Annotated[Path, typer.Argument(help="GEDCOM file to import")],
    output: Annotated[Path, typer.Argument(help="JSON document to write")],
) -> None:
    """Import the individuals and families of a GEDCOM file."""
    from kintree.parsing import read_gedcom

    typer.echo(f"Parsing GEDCOM file: {gedcom}")
    people = read_gedcom(gedcom)
    typer.echo(f"  Found {len(people)} persons")

    write_family_tree(output, people)
    typer.echo(f"Saved to {output}")


@app.command()
def plot(
    tree: Annotated[Path, typer.Argument(help="Family tree JSON document")],
    output: Annotated[Path, typer.Argument(help="Image (.png/.svg/.pdf) or .dot file")],
    highlight_from: Annotated[str | None, typer.Option("--from", help="Highlight the path starting at this ID")] = None,
    highlight_to: Annotated[str | None, typer.Option("--to", help="Highlight the path ending at this ID")] = None,
    auto_align: Annotated[bool, typer.Option("--auto-align", help="Ignore manual positions")] = False,
    graphviz: Annotated[bool, typer.Option("--graphviz", help="Render through Graphviz instead of matplotlib")] = False,
) -> None:
    """Render the computed layout."""
    from kintree.plotting import plot_layout, write_dot

    people = _load(tree)
    result = compute_layout(people, auto_align)

    path: list[str] = []
    if highlight_from and highlight_to:
        a, b = _find(people, highlight_from), _find(people, highlight_to)
        path = find_relationship(people, a, b).path

    if graphviz or output.suffix.lower() == ".dot":
        write_dot(people, result, output)
        typer.echo(f"Graph saved to {output}")
    else:
        plot_layout(people, result, output, highlight=path)


if __name__ == "__main__":
    app()
