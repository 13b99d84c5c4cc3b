"""
This file is the entry point for the 'kuruma' command-line tool.
Run 'kuruma' in your shell to use the CLI.
"""
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer

from common.app_setup import print_and_log, print_error, print_warning, setup_logging
from interpreters.interpreter_manager import get_interpreter
from kuruma.settings import DEFAULT_SETTINGS_FILE, ResolverSettings, load_settings
from kuruma.workspace import load_dependencies, read_properties, render_sql, resolve_directories
from resolver import (
    Diagnostic,
    DiagnosticKind,
    Diagnostics,
    KurumaError,
    build_dependency_tree,
    find_unresolved_requirements,
)

app = typer.Typer(add_completion=False, help="Resolve the load order of resources from their manifest files.")

logger = logging.getLogger(__name__)


def _resource_dirs():
    return typer.Argument(
        ..., exists=True, file_okay=False, dir_okay=True, help="Resource directories, in priority order"
    )


def _infer_scripts():
    return typer.Option(False, "--infer-scripts", help="Also infer requirements from @resource/ script paths")


class State:
    settings: ResolverSettings = ResolverSettings()
    verbose: bool = False


state = State()


@app.callback()
def main(
    config: Path = typer.Option(Path(DEFAULT_SETTINGS_FILE), "--config", "-c", help="Path to kuruma.yml file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Run with verbose logging"),
    logfile: Optional[str] = typer.Option(None, envvar="KURUMA_LOGFILE", help="Log file (default ~/.kuruma/log.txt)"),
):
    """Load settings and set up logging for every command."""
    setup_logging(app_name="kuruma", loglevel=logging.DEBUG if verbose else logging.INFO, logfile=logfile)
    state.verbose = verbose
    try:
        state.settings = load_settings(config)
    except KurumaError as e:
        print_error(e.message)
        raise typer.Exit(1)


def _settings(infer_scripts: bool) -> ResolverSettings:
    if infer_scripts:
        return state.settings.merge({"infer_script_dependencies": True})
    return state.settings


def _report(diagnostics: List[Diagnostic]) -> None:
    for diagnostic in diagnostics:
        if diagnostic.kind == DiagnosticKind.UNRECOGNIZED_STATEMENT and not state.verbose:
            logger.info(diagnostic.message)
            continue
        print_warning(diagnostic.message)


@app.command()
def order(
    resources: List[Path] = _resource_dirs(),
    infer_scripts: bool = _infer_scripts(),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """Print the load order of the given resources."""
    settings = _settings(infer_scripts)
    try:
        result = resolve_directories(resources, settings.extractor(), settings.manifest_files)
    except KurumaError as e:
        print_error(e.message)
        raise typer.Exit(1)
    _report(result.diagnostics)
    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        return
    if not result.load_order:
        print_warning("No resources found")
        return
    for position, name in enumerate(result.load_order, start=1):
        print_and_log(f"{position}. {name}")


@app.command()
def tree(
    resources: List[Path] = _resource_dirs(),
    infer_scripts: bool = _infer_scripts(),
):
    """Draw the dependency tree of the given resources."""
    settings = _settings(infer_scripts)
    diagnostics = Diagnostics()
    try:
        dependencies = load_dependencies(resources, settings.extractor(), settings.manifest_files, diagnostics)
    except KurumaError as e:
        print_error(e.message)
        raise typer.Exit(1)
    find_unresolved_requirements(dependencies, diagnostics)
    _report(diagnostics.items)
    root = build_dependency_tree(dependencies)
    typer.echo(root.name)
    for line in root.render():
        typer.echo(line)


@app.command()
def show(resource: Path = typer.Argument(..., exists=True, help="Resource directory or manifest file")):
    """Print the declarations found in a resource's manifest as JSON."""
    diagnostics = Diagnostics()
    try:
        properties = read_properties(resource, state.settings.manifest_files, diagnostics)
    except KurumaError as e:
        print_error(e.message)
        raise typer.Exit(1)
    _report(diagnostics.items)
    typer.echo(json.dumps(properties, indent=2))


@app.command()
def sql(
    resources: List[Path] = _resource_dirs(),
    locale: Optional[str] = typer.Option(None, help="Keep only SQL files of this locale (default from settings)"),
    transaction: bool = typer.Option(False, "--transaction/--no-transaction", help="Wrap files in transactions"),
):
    """Print the SQL files of the given resources, concatenated in load order."""
    settings = state.settings
    try:
        result = resolve_directories(resources, settings.extractor(), settings.manifest_files)
    except KurumaError as e:
        print_error(e.message)
        raise typer.Exit(1)
    _report(result.diagnostics)
    if not result.load_order:
        print_warning("No resources found")
        return
    typer.echo(render_sql(result.load_order, resources, locale or settings.locale, transaction))


@app.command()
def info():
    """Show the manifest interpreters in use."""
    for file_type in state.settings.manifest_files:
        typer.echo(get_interpreter(file_type).info.to_json(indent=2))


if __name__ == "__main__":
    app()
