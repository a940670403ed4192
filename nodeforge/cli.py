"""Typer CLI for computing IDs and checking nodes from the shell."""

from __future__ import annotations

import json
import logging
from typing import Any

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from nodeforge import __version__
from nodeforge.config import Settings
from nodeforge.core.facade import IntegrityEngine
from nodeforge.knowledge.errors import NodeforgeError
from nodeforge.knowledge.query import Query

app = typer.Typer(
    name="nodeforge",
    help="nodeforge: deterministic node IDs and graph integrity checks",
    no_args_is_help=True,
)
console = Console()

_state: dict[str, Any] = {"config": None}


def _setup_logging(verbose: bool = False, config_level: str | None = None) -> None:
    if verbose:
        level = logging.DEBUG
    elif config_level:
        level = getattr(logging, config_level.upper(), logging.INFO)
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _fail(error: Exception) -> typer.Exit:
    console.print(f"[red]{escape(str(error))}[/]")
    return typer.Exit(1)


def _load_settings() -> Settings:
    try:
        return Settings.load(_state["config"])
    except (OSError, yaml.YAMLError, ValidationError) as e:
        raise _fail(e) from e


def _engine() -> IntegrityEngine:
    settings = _load_settings()
    try:
        return IntegrityEngine.from_settings(settings)
    except NodeforgeError as e:
        raise _fail(e) from e


def parse_assignments(pairs: list[str]) -> dict[str, Any]:
    """Turn ``key=value`` arguments into a property map.

    Values that parse as JSON keep their type (``80`` is an int, ``true`` a
    bool); anything else is a plain string.
    """
    props: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            msg = f"expected key=value, got {pair!r}"
            raise typer.BadParameter(msg)
        try:
            props[key] = json.loads(raw)
        except json.JSONDecodeError:
            props[key] = raw
    return props


@app.callback()
def main_options(
    config: str | None = typer.Option(None, help="Path to config YAML"),
    verbose: bool = typer.Option(False, "-v", "--verbose"),
):
    """Global options."""
    _state["config"] = config
    config_level = None
    if config:
        config_level = _load_settings().log_level
    _setup_logging(verbose, config_level=config_level)


@app.command(name="id")
def generate_id(
    node_type: str = typer.Argument(help="Node type, e.g. host"),
    properties: list[str] = typer.Argument(None, help="Properties as key=value"),
    canonical: bool = typer.Option(False, "--canonical", help="Also print the canonical string"),
):
    """Print the deterministic ID for a node."""
    props = parse_assignments(properties or [])
    engine = _engine()
    try:
        node_id = engine.generate_id(node_type, props)
        canonical_text = engine.generator.canonical_string(node_type, props)
    except NodeforgeError as e:
        raise _fail(e) from e
    console.print(node_id, highlight=False)
    if canonical:
        console.print(f"[dim]{escape(canonical_text)}[/]", highlight=False)


@app.command()
def validate(
    node_type: str = typer.Argument(help="Node type, e.g. port"),
    properties: list[str] = typer.Argument(None, help="Properties as key=value"),
    has_parent: bool = typer.Option(False, "--has-parent", help="A parent reference is set"),
):
    """Check a candidate node against the taxonomy and field rules."""
    props = parse_assignments(properties or [])
    result = _engine().validate_node(node_type, props, has_parent)
    if result.ok:
        console.print(f"[green]ok[/] {escape(node_type)}")
        return
    for issue in result.issues:
        console.print(f"[red]{issue.kind.value}[/] {escape(issue.message)}", highlight=False)
    raise typer.Exit(1)


@app.command()
def types():
    """List registered node types and their identifying properties."""
    engine = _engine()
    table = Table(title="Node Types")
    table.add_column("Type", style="cyan")
    table.add_column("Identifying Properties", style="green")
    table.add_column("Parent", style="yellow")

    for node_type in engine.registry.all_node_types():
        rel = engine.taxonomy.get_parent_relationship(node_type)
        table.add_row(
            node_type,
            ", ".join(engine.registry.get_identifying_properties(node_type)),
            rel.parent_type if rel else "",
        )

    console.print(table)


@app.command()
def taxonomy():
    """Show the parent relationships and root types."""
    tax = _engine().taxonomy
    table = Table(title="Taxonomy")
    table.add_column("Child", style="cyan")
    table.add_column("Parent", style="green")
    table.add_column("Ref Field")
    table.add_column("Relationship", style="yellow")
    table.add_column("Chain", style="dim")

    for rel in tax.relationships():
        table.add_row(
            rel.child_type,
            rel.parent_type,
            rel.ref_field,
            rel.relationship,
            " -> ".join(tax.parent_chain(rel.child_type)),
        )

    console.print(table)
    console.print(f"Roots: {', '.join(tax.root_node_types())}")


@app.command()
def scope(
    mission_scope: str = typer.Option("", "--scope", help="current_run, same_mission or all"),
    mission_name: str = typer.Option("", "--mission-name"),
    run_number: int | None = typer.Option(None, "--run-number"),
    include_run_metadata: bool = typer.Option(False, "--include-run-metadata"),
):
    """Validate query scope settings."""
    query = Query(
        mission_scope=mission_scope,
        mission_name=mission_name,
        run_number=run_number,
        include_run_metadata=include_run_metadata,
    )
    try:
        query.check_scope()
    except NodeforgeError as e:
        raise _fail(e) from e
    console.print(
        json.dumps(query.scope_filter(), sort_keys=True), highlight=False, soft_wrap=True,
    )


@app.command()
def version():
    """Show version."""
    console.print(f"nodeforge v{__version__}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
