"""CodeDistill CLI - cdl command."""

import click

from codedistill.cli.distill import distill_command
from codedistill.cli.languages import languages_command
from codedistill.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="cdl")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """CodeDistill - reduce source files to declarations and the imports they need."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(distill_command, name="distill")
cli.add_command(languages_command, name="languages")


if __name__ == "__main__":
    cli()
