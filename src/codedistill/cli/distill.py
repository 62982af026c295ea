"""cdl distill command - distill source files to their public surface."""

import json
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from codedistill.config.loader import load_config, with_overrides
from codedistill.config.models import DistillerConfig
from codedistill.core.errors import ConfigError
from codedistill.core.logging import configure_logging
from codedistill.distill._internal.parsing.registry import default_registry
from codedistill.distill.diagnostics import Diagnostic, Severity
from codedistill.distill.discovery import discover, read_sources
from codedistill.distill.ops import BatchDistiller, BatchResult, Distiller

_SEVERITY_STYLES = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "dim",
}


def _overrides(
    visibility: str | None,
    detail: str | None,
    wildcards: str | None,
    workers: int | None,
    no_docstrings: bool = False,
) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if visibility is not None:
        overrides.setdefault("distill", {})["min_visibility"] = visibility
    if detail is not None:
        overrides.setdefault("distill", {})["detail_level"] = detail
    if no_docstrings:
        overrides.setdefault("distill", {})["include_docstrings"] = False
    if wildcards is not None:
        overrides["resolver"] = {"wildcard_policy": wildcards}
    if workers is not None:
        overrides["batch"] = {"max_workers": workers}
    return overrides


def _load(config_path: Path | None, overrides: dict[str, Any]) -> DistillerConfig:
    try:
        return with_overrides(load_config(config_path=config_path), overrides)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


def _print_diagnostics(console: Console, diagnostics: list[Diagnostic]) -> None:
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("Severity")
    table.add_column("Kind")
    table.add_column("Location")
    table.add_column("Message")
    for diag in diagnostics:
        location = diag.file_path
        if diag.line is not None:
            location = f"{location}:{diag.line}"
            if diag.column is not None:
                location = f"{location}:{diag.column}"
        style = _SEVERITY_STYLES.get(diag.severity, "")
        table.add_row(
            f"[{style}]{diag.severity.value}[/{style}]",
            diag.kind.value,
            location,
            diag.message,
        )
    console.print(table)


def _render_text(batch: BatchResult) -> None:
    for result in batch.outputs:
        click.echo(f'<file path="{result.path}">')
        click.echo(result.text or "", nl=False)
        click.echo("</file>")


@click.command()
@click.argument(
    "paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path)
)
@click.option(
    "--visibility",
    help="Lowest visibility kept: public, protected, package or all.",
)
@click.option(
    "--detail",
    help="Detail level: signatures, signatures+fields or full-minus-bodies.",
)
@click.option(
    "--wildcards",
    type=click.Choice(["first", "all", "none"]),
    help="How unresolved names are attributed to wildcard imports.",
)
@click.option("--workers", type=int, help="Worker threads (0 = 80% of CPU cores).")
@click.option("--language", help="Force a language instead of detecting by extension.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    help="Config file to use instead of .codedistill.yaml.",
)
@click.option("--no-docstrings", is_flag=True, help="Drop Javadoc and docstrings from the output")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--no-diagnostics", is_flag=True, help="Do not print the diagnostics table")
@click.pass_context
def distill_command(
    ctx: click.Context,
    paths: tuple[Path, ...],
    visibility: str | None,
    detail: str | None,
    wildcards: str | None,
    workers: int | None,
    language: str | None,
    config_path: Path | None,
    no_docstrings: bool,
    as_json: bool,
    no_diagnostics: bool,
) -> None:
    """Distill source files to declarations and the imports they need.

    PATHS are files or directories; directories are searched for files in
    every supported language. Exits with status 1 when any file could not
    be distilled because of a syntax or internal error.
    """
    config = _load(config_path, _overrides(visibility, detail, wildcards, workers, no_docstrings))
    if not (ctx.obj or {}).get("verbose"):
        configure_logging(config=config.logging)

    registry = default_registry()
    files = discover(paths, registry)
    if not files:
        raise click.ClickException("No source files found in the given paths")

    batch = BatchDistiller(Distiller(config, registry)).run(read_sources(files, language))

    if as_json:
        click.echo(
            json.dumps(
                {
                    "run_id": batch.run_id,
                    "counts": batch.counts,
                    "files": [r.to_dict() for r in batch.results],
                },
                indent=2,
            )
        )
    else:
        _render_text(batch)
        diagnostics = batch.diagnostics
        if diagnostics and not no_diagnostics:
            _print_diagnostics(Console(stderr=True), diagnostics)

    if any(d.severity is Severity.ERROR for d in batch.diagnostics):
        ctx.exit(1)
