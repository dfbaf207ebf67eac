import typer
import logging
import sys

from . import configure_cli
from . import recordings_cli
from . import settings_cli
from . import browser_cli
from .config import get_settings
from .. import __version__


def setup_logging():
    """Configures basic logging for the CLI."""
    log_level_str = get_settings().LOG_LEVEL.upper()
    numeric_level = getattr(logging, log_level_str, logging.INFO)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )


app = typer.Typer(
    name="domreplay",
    help="Record interactions with web pages and replay them against the live DOM.",
    add_completion=True,
    no_args_is_help=True
)

# Register subcommands
app.add_typer(configure_cli.app, name="configure")
app.add_typer(recordings_cli.app, name="recordings")
app.add_typer(settings_cli.app, name="settings")
app.command("record")(browser_cli.record_command)
app.command("play")(browser_cli.play_command)


def version_callback(value: bool):
    if value:
        typer.echo(f"domreplay version: {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True, help="Show the application's version and exit.")
):
    """
    domreplay CLI
    """
    setup_logging()


if __name__ == "__main__":
    app()
