import asyncio
import json
import logging
from typing import Optional

import typer

from .common import build_recording_store
from ..schemas.recording import PlaybackSpeed
from ..storage_manager.exceptions import StorageManagerError

logger = logging.getLogger(__name__)

app = typer.Typer(name="settings", help="Show and change recorder settings.", no_args_is_help=True)


@app.command("show")
def show_settings():
    """Print the stored settings as JSON."""
    settings = asyncio.run(build_recording_store().get_settings())
    typer.echo(json.dumps(settings.to_dict(), indent=2))


@app.command("set")
def set_settings(
    hotkey: Optional[str] = typer.Option(None, "--hotkey", help="Recording toggle shortcut, e.g. Ctrl+Shift+R."),
    speed: Optional[PlaybackSpeed] = typer.Option(None, "--speed", help="Default playback speed."),
    auto_export: Optional[bool] = typer.Option(None, "--auto-export/--no-auto-export", help="Stored automatic-export preference."),
):
    """Change one or more settings."""
    patch = {}
    if hotkey is not None:
        patch["hotkey"] = hotkey
    if speed is not None:
        patch["playbackSpeed"] = speed.value
    if auto_export is not None:
        patch["autoExport"] = auto_export
    if not patch:
        typer.echo("Nothing to change.")
        return
    try:
        settings = asyncio.run(build_recording_store().set_settings(patch))
    except StorageManagerError as e:
        typer.secho(f"Could not update settings: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    logger.info(f"Settings updated: {sorted(patch)}")
    typer.echo(json.dumps(settings.to_dict(), indent=2))
