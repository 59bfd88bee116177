"""Main CLI entry point for collectionkit."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .analysis.source_text import analyze_source_text
from .collections import write_collection_import_maps
from .config import Config
from .errors import CollectionKitError
from .models import CollectionOptions
from .project import Project
from .rpc.messages import dumps
from .rpc.serve import serve_project
from .scanner import build_source_tree, compute_order_map, compute_pathname_map


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def cli(debug: bool):
    """collectionkit - Live source collections and static analysis."""
    _configure_logging(debug)


@cli.command("import-maps")
@click.argument("root", type=click.Path(exists=True, file_okay=False))
def import_maps(root: str):
    """Discover collections under ROOT and write the import-map module.

    Examples:
        python -m collectionkit.main import-maps ./site
    """
    config = Config.from_env()
    project = Project(root, config).open()

    try:
        changed = write_collection_import_maps(project)
    except CollectionKitError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    output = project.root / config.cache_dir / "import-maps.js"
    if changed:
        click.echo(f"✅ Import maps written: {output}")
    else:
        click.echo(f"✅ Import maps up to date: {output}")


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False))
@click.option("--base-pathname", help="Pathname prepended to every route")
@click.option("--package-name", help="Leading segment removed from routes")
def pathnames(root: str, base_pathname: str | None, package_name: str | None):
    """Print the pathname and order key of every entry under ROOT."""
    config = Config.from_env()
    tree = build_source_tree(Path(root), config)
    options = CollectionOptions(base_path=base_pathname, package_name=package_name)
    pathname_map = compute_pathname_map(tree, options)
    order_map = compute_order_map(tree)

    table = Table(title=str(Path(root).resolve()))
    table.add_column("Order")
    table.add_column("Pathname")
    table.add_column("Path")

    for node in tree.walk():
        if node is tree:
            continue
        table.add_row(
            order_map.get(node.path, ""),
            pathname_map[node.path],
            str(Path(node.path).relative_to(tree.path)),
        )

    Console().print(table)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--export", "export_name", help="Also print the standalone source of this export")
@click.option("--root", type=click.Path(exists=True, file_okay=False), help="Project root (default: file's directory)")
def analyze(file: str, export_name: str | None, root: str | None):
    """Print the analysis of FILE as JSON."""
    file_path = Path(file).resolve()
    project = Project(root or file_path.parent, Config.from_env()).open()

    try:
        result = asyncio.run(
            analyze_source_text(
                {"filePath": file_path.as_posix(), "exportName": export_name},
                project,
            )
        )
    except CollectionKitError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(json.loads(dumps(result)), indent=2))


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False))
@click.option("--port", type=int, help="Port for the refresh server")
def serve(root: str, port: int | None):
    """Watch ROOT, keep import maps current and notify subscribed clients."""
    config = Config.from_env()
    if port is not None:
        config = config.model_copy(update={"port": port})

    click.echo(f"🔍 Watching {Path(root).resolve()} on ws://{config.host}:{config.port}")
    try:
        asyncio.run(serve_project(root, config))
    except KeyboardInterrupt:
        click.echo("\n👋 Stopped")


if __name__ == "__main__":
    cli()
