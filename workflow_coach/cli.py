"""CLI for workflow-coach."""

import logging
from pathlib import Path

import click

from .config import CoachConfig, ConfigError, load_config
from .recommendation.engine import RecommendationEngine
from .recommendation.errors import UnsupportedQuery
from .recommendation.export import write_snapshot
from .recommendation.joiner import Row
from .recommendation.types import Direction, NotLoaded, RecommendationEntry
from .workflow.graph import WorkflowGraph


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to coach.yaml (default: $WORKFLOW_COACH_CONFIG or ./coach.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool):
    """Workflow Coach - node recommendations from usage statistics."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        ctx.obj = load_config(config_path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _load_engine(config: CoachConfig) -> RecommendationEngine:
    try:
        catalog = config.load_catalog()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    engine = RecommendationEngine(config.build_sources(), config=config.recommendation)
    engine.initialize(catalog.classify)
    return engine


def _format_entry(entry: RecommendationEntry | None) -> str:
    if entry is None:
        return "-"
    frequency = entry.frequency()
    if entry.total_frequency > 0:
        share = 100.0 * frequency / entry.total_frequency
        return f"{entry.target_id} ({frequency}, {share:.1f}%)"
    return f"{entry.target_id} ({frequency})"


def _resolve_nodes(graph: WorkflowGraph, nodes: tuple[str, ...]) -> None:
    for key in nodes:
        try:
            graph.node_id(key)
        except (KeyError, ValueError) as exc:
            raise click.ClickException(f"Cannot resolve node {key}: {exc}") from exc


def _join(engine: RecommendationEngine, lists) -> list[Row]:
    try:
        return engine.join(lists)
    except ValueError as exc:
        raise click.ClickException(f"Cannot join recommendations: {exc}") from exc


def _echo_rows(rows: list[Row], names: tuple[str, ...], limit: int) -> None:
    click.echo(" | ".join(names))
    for i, row in enumerate(rows[:limit] if limit > 0 else rows, 1):
        cells = " | ".join(_format_entry(entry) for entry in row)
        click.echo(f"{i}. {cells}")


@cli.command()
@click.argument("nodes", nargs=-1)
@click.option(
    "--predecessors",
    is_flag=True,
    help="Recommend predecessors instead of successors",
)
@click.option(
    "--workflow",
    "-w",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Workflow JSON; NODES are then node keys within it",
)
@click.option("--limit", "-n", type=int, default=10, help="Number of rows to show")
@click.pass_obj
def recommend(
    config: CoachConfig,
    nodes: tuple[str, ...],
    predecessors: bool,
    workflow: Path | None,
    limit: int,
):
    """Recommend nodes following (or preceding) NODES.

    Without NODES, nodes to start a workflow with are recommended.
    """
    engine = _load_engine(config)
    graph = None
    if workflow:
        try:
            graph = WorkflowGraph.load(workflow)
        except (KeyError, ValueError) as exc:
            raise click.ClickException(f"Invalid workflow {workflow}: {exc}") from exc
    direction = Direction.PREDECESSORS if predecessors else Direction.SUCCESSORS

    if graph is not None:
        _resolve_nodes(graph, nodes)

    try:
        result = engine.recommend(list(nodes), direction, graph)
    except UnsupportedQuery as exc:
        raise click.ClickException(str(exc)) from exc

    if isinstance(result, NotLoaded):
        click.echo("No node recommendations loaded.")
        raise SystemExit(1)

    rows = _join(engine, result.lists)
    if not rows:
        click.echo("No recommendations.")
        return
    _echo_rows(rows, result.source_names, limit)


@cli.command("most-frequent")
@click.option("--limit", "-n", type=int, default=10, help="Number of rows to show")
@click.pass_obj
def most_frequent(config: CoachConfig, limit: int):
    """Show the most frequently used nodes per source."""
    engine = _load_engine(config)
    result = engine.most_frequently_used()
    if isinstance(result, NotLoaded):
        click.echo("No node recommendations loaded.")
        raise SystemExit(1)
    _echo_rows(_join(engine, result.lists), result.source_names, limit)


@cli.command()
@click.pass_obj
def sources(config: CoachConfig):
    """List configured statistics sources and their state."""
    configured = config.build_sources()
    if not configured:
        click.echo("No sources configured.")
        return
    for source in configured:
        state = "enabled" if source.is_enabled() else "disabled"
        if source.is_enabled() and source.needs_update():
            state = "needs update"
        click.echo(f"{source.name:<20} {state:<13} {source.path}")


@cli.command()
@click.argument("output", type=click.Path(path_type=Path))
@click.pass_obj
def export(config: CoachConfig, output: Path):
    """Write the loaded recommendation snapshot to OUTPUT as JSON."""
    engine = _load_engine(config)
    snapshot = engine.snapshot
    if snapshot is None:
        click.echo("No node recommendations loaded.")
        raise SystemExit(1)
    digest = write_snapshot(snapshot, output)
    click.echo(f"Sources: {len(snapshot)}  Hash: {digest[:12]}")
    click.echo(f"File: {output}")


if __name__ == "__main__":
    cli()
