"""cdl languages command - list supported languages."""

import json

import click

from codedistill.distill._internal.parsing.registry import default_registry


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def languages_command(as_json: bool) -> None:
    """List supported languages and the file extensions mapped to them."""
    registry = default_registry()
    packs = [registry.get(name).pack for name in registry.languages()]
    rows = [
        {
            "language": pack.name,
            "extensions": sorted(pack.extensions),
            "grammar": pack.grammar_package,
        }
        for pack in packs
    ]
    if as_json:
        click.echo(json.dumps(rows))
        return
    for row in rows:
        exts = ", ".join(f".{ext}" for ext in row["extensions"])
        click.echo(f"{row['language']}: {exts} ({row['grammar']})")
