"""ArchTrace CLI: command-line interface for model analysis."""

from __future__ import annotations

import json

import click

from archtrace.client import ArchTrace
from archtrace.engine.directedness import available_notations

DIRECTION = click.Choice(["outgoing", "incoming", "both"])


def _get_client(ctx: click.Context) -> ArchTrace:
    model_path = ctx.obj["model"]
    if not model_path:
        raise click.UsageError("No model given. Use --model or set ARCHTRACE_MODEL.")
    try:
        return ArchTrace.from_file(model_path, notation=ctx.obj["notation"])
    except (OSError, ValueError) as exc:
        raise click.ClickException(f"Cannot load model {model_path}: {exc}") from exc


def _csv(values: tuple[str, ...]) -> list[str] | None:
    """Flatten repeated and comma-separated option values."""
    items = [v.strip() for raw in values for v in raw.split(",") if v.strip()]
    return items or None


@click.group()
@click.option(
    "--model",
    envvar="ARCHTRACE_MODEL",
    default=None,
    type=click.Path(dir_okay=False),
    help="Path to the JSON model file.",
)
@click.option(
    "--notation",
    default="generic",
    type=click.Choice(available_notations(), case_sensitive=False),
    help="Notation used to decide relationship directedness.",
)
@click.pass_context
def cli(ctx: click.Context, model: str | None, notation: str) -> None:
    """ArchTrace CLI: query architecture models as graphs."""
    ctx.ensure_object(dict)
    ctx.obj["model"] = model
    ctx.obj["notation"] = notation


@cli.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show model statistics."""
    s = _get_client(ctx).stats()
    click.echo(f"Elements: {s.element_count}  Relationships: {s.relationship_count}")
    click.echo(f"Graph edges: {s.edge_count} ({s.synthetic_edge_count} synthetic reverse)")
    if s.elements_by_type:
        click.echo("Elements by type:")
        for t, c in s.elements_by_type.items():
            click.echo(f"  {t}: {c}")
    if s.relationships_by_type:
        click.echo("Relationships by type:")
        for t, c in s.relationships_by_type.items():
            click.echo(f"  {t}: {c}")


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Report relationships that analysis will ignore."""
    result = _get_client(ctx).validate()
    if result.valid:
        click.echo("Model is valid.")
    else:
        click.echo("Validation errors:")
        for err in result.errors:
            click.echo(f"  ERROR: {err}")
    for warn in result.warnings:
        click.echo(f"  WARNING: {warn}")


@cli.command()
@click.argument("start")
@click.option("--direction", default="both", type=DIRECTION)
@click.option("--depth", default=3, type=int, help="Maximum hops.")
@click.option("--rel-type", "rel_types", multiple=True, help="Relationship types to walk.")
@click.option("--layer", "layers", multiple=True, help="Only report these layers.")
@click.option("--element-type", "element_types", multiple=True, help="Only report these types.")
@click.pass_context
def related(
    ctx: click.Context,
    start: str,
    direction: str,
    depth: int,
    rel_types: tuple[str, ...],
    layers: tuple[str, ...],
    element_types: tuple[str, ...],
) -> None:
    """List elements reachable from START."""
    res = _get_client(ctx).related(
        start,
        direction=direction,
        max_depth=depth,
        relationship_types=_csv(rel_types),
        layers=_csv(layers),
        element_types=_csv(element_types),
    )
    if not res.hits:
        click.echo("No related elements found.")
        return
    for h in res.hits:
        via = f"  via {h.via.relationship_id} ({h.via.relationship_type})" if h.via else ""
        click.echo(f"  {h.element_id}  distance={h.distance}{via}")


@cli.command()
@click.argument("start")
@click.argument("target")
@click.option("--direction", default="both", type=DIRECTION)
@click.option("--max-hops", default=6, type=int)
@click.option("--rel-type", "rel_types", multiple=True, help="Relationship types to walk.")
@click.pass_context
def path(
    ctx: click.Context,
    start: str,
    target: str,
    direction: str,
    max_hops: int,
    rel_types: tuple[str, ...],
) -> None:
    """Print one shortest path from START to TARGET."""
    result = _get_client(ctx).shortest_path(
        start,
        target,
        direction=direction,
        max_hops=max_hops,
        relationship_types=_csv(rel_types),
    )
    if result is None:
        click.echo(f"No path from {start} to {target} within {max_hops} hops.")
        return
    click.echo(" -> ".join(result))


@cli.command()
@click.argument("start")
@click.argument("target")
@click.option("--k", "k", default=3, type=int, help="Maximum number of paths.")
@click.option("--direction", default="both", type=DIRECTION)
@click.option("--max-hops", default=6, type=int)
@click.option("--rel-type", "rel_types", multiple=True, help="Relationship types to walk.")
@click.pass_context
def paths(
    ctx: click.Context,
    start: str,
    target: str,
    k: int,
    direction: str,
    max_hops: int,
    rel_types: tuple[str, ...],
) -> None:
    """Print up to K loopless paths from START to TARGET, shortest first."""
    results = _get_client(ctx).k_shortest_paths(
        start,
        target,
        k=k,
        direction=direction,
        max_hops=max_hops,
        relationship_types=_csv(rel_types),
    )
    if not results:
        click.echo("No paths found.")
        return
    for i, p in enumerate(results, 1):
        click.echo(f"  {i}. {' -> '.join(p)}")


@cli.command()
@click.argument("source")
@click.argument("target")
@click.option("--direction", default="both", type=DIRECTION)
@click.option("--rel-type", "rel_types", multiple=True, help="Relationship types to walk.")
@click.option("--layer", "layers", multiple=True, help="Allowed layers for intermediate elements.")
@click.option("--max-paths", default=10, type=int)
@click.option(
    "--mode",
    default="shortest",
    type=click.Choice(["shortest", "k-shortest"]),
    help="k-shortest also lists longer alternatives.",
)
@click.pass_context
def between(
    ctx: click.Context,
    source: str,
    target: str,
    direction: str,
    rel_types: tuple[str, ...],
    layers: tuple[str, ...],
    max_paths: int,
    mode: str,
) -> None:
    """Print paths from SOURCE to TARGET with their relationships."""
    res = _get_client(ctx).paths_between(
        source,
        target,
        direction=direction,
        relationship_types=_csv(rel_types),
        layers=_csv(layers),
        max_paths=max_paths,
        mode=mode,
    )
    if not res.paths:
        click.echo("No paths found.")
        return
    click.echo(f"Shortest distance: {res.shortest_distance}")
    for p in res.paths:
        rels = ", ".join(s.relationship_id for s in p.steps)
        click.echo(f"  {' -> '.join(p.element_ids)}  [{rels}]")


@cli.command()
@click.argument("seeds", nargs=-1, required=True)
@click.option("--direction", default="both", type=DIRECTION)
@click.option("--depth", default=2, type=int, help="Expansion depth per seed.")
@click.option("--rel-type", "rel_types", multiple=True, help="Relationship types to walk.")
@click.option("--layer", "layers", multiple=True, help="Layers to include and traverse.")
@click.option("--element-type", "element_types", multiple=True, help="Types to include.")
@click.option("--stop-at-layer", multiple=True, help="Do not expand past these layers.")
@click.option("--stop-at-type", multiple=True, help="Do not expand past these types.")
@click.pass_context
def trace(
    ctx: click.Context,
    seeds: tuple[str, ...],
    direction: str,
    depth: int,
    rel_types: tuple[str, ...],
    layers: tuple[str, ...],
    element_types: tuple[str, ...],
    stop_at_layer: tuple[str, ...],
    stop_at_type: tuple[str, ...],
) -> None:
    """Build a traceability graph from SEEDS and print it as JSON."""
    explorer = _get_client(ctx).explorer(list(seeds))
    for seed in dict.fromkeys(seeds):
        explorer.expand(
            seed,
            direction=direction,
            depth=depth,
            relationship_types=_csv(rel_types),
            layers=_csv(layers),
            element_types=_csv(element_types),
            stop_at_layer=_csv(stop_at_layer),
            stop_at_type=_csv(stop_at_type),
        )
    click.echo(json.dumps(explorer.to_dict(), indent=2))


@cli.command()
@click.option("--rows", "rows", multiple=True, required=True, help="Row element IDs.")
@click.option("--cols", "cols", multiple=True, required=True, help="Column element IDs.")
@click.option("--rel-type", "rel_types", multiple=True, help="Relationship types to count.")
@click.option(
    "--direction", default="both", type=click.Choice(["rowToCol", "colToRow", "both"])
)
@click.pass_context
def matrix(
    ctx: click.Context,
    rows: tuple[str, ...],
    cols: tuple[str, ...],
    rel_types: tuple[str, ...],
    direction: str,
) -> None:
    """Print relationship counts between ROWS and COLS."""
    res = _get_client(ctx).matrix(
        _csv(rows) or [],
        _csv(cols) or [],
        relationship_types=_csv(rel_types),
        direction=direction,
    )
    width = max([len(r.label) for r in res.rows] + [0])
    click.echo(" " * width + "  " + "  ".join(c.label for c in res.cols) + "  total")
    for row, cells, total in zip(res.rows, res.cells, res.row_totals):
        counts = "  ".join(
            str(cell.count).rjust(len(col.label)) for cell, col in zip(cells, res.cols)
        )
        click.echo(f"{row.label.ljust(width)}  {counts}  {total}")
    click.echo(f"Total: {res.grand_total}")


@cli.command()
@click.pass_context
def mcp(ctx: click.Context) -> None:
    """Start the MCP server for AI agent integration."""
    import os

    if ctx.obj["model"]:
        os.environ["ARCHTRACE_MODEL_PATH"] = ctx.obj["model"]
    os.environ["ARCHTRACE_NOTATION"] = ctx.obj["notation"]
    from archtrace.mcp.server import run_server

    run_server()


if __name__ == "__main__":
    cli()
