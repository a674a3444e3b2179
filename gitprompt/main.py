"""CLI entry point for gitprompt."""

import sys
from pathlib import Path

import click
import structlog
from pydantic import ValidationError

from gitprompt.app import build_renderer, collect_snapshot, configure_logging
from gitprompt.core.config import PromptSettings
from gitprompt.exceptions import GitPromptError

logger = structlog.get_logger()


@click.command()
@click.version_option(package_name="gitprompt")
@click.option(
    "--dir",
    "-C",
    "directory",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Working directory (defaults to the current directory)",
)
@click.option("--style", "-s", default=None, help="Output style or format:<template>")
@click.option("--verbose", "-v", count=True, help="Log verbosely (repeat for debug)")
def main(directory: Path | None, style: str | None, verbose: int) -> None:
    """Print the state of a git working tree for a shell prompt."""
    try:
        settings = PromptSettings()
    except ValidationError as e:
        click.echo(f"gitprompt: configuration error: {e}", err=True)
        sys.exit(1)

    configure_logging(verbose, level=settings.log_level)
    directory = (directory or Path.cwd()).absolute()

    try:
        renderer = build_renderer(settings)
        snapshot = collect_snapshot(directory, settings)
        output = renderer.render(snapshot, style or settings.style)
    except GitPromptError as e:
        logger.error("prompt_failed", directory=str(directory), error=str(e))
        click.echo(f"gitprompt: {e}", err=True)
        sys.exit(1)

    click.echo(output)


def run() -> None:
    main()
