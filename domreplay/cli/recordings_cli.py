import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from .common import build_recording_store
from ..storage_manager.exceptions import ImportFormatError, StorageManagerError

logger = logging.getLogger(__name__)

app = typer.Typer(name="recordings", help="List, inspect, export and import saved recordings.", no_args_is_help=True)


def _fail(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.command("list")
def list_recordings():
    """List saved recordings."""
    store = build_recording_store()
    try:
        recordings = asyncio.run(store.list())
    except StorageManagerError as e:
        logger.error(f"Could not list recordings: {e}", exc_info=True)
        _fail(f"Could not list recordings: {e}")
    if not recordings:
        typer.echo("No recordings saved.")
        return
    for recording in recordings:
        created = datetime.fromtimestamp(recording.created / 1000).strftime("%Y-%m-%d %H:%M:%S")
        typer.echo(f"{recording.id}\t{recording.name}\t{len(recording.events)} events\t{created}")


@app.command("show")
def show_recording(recording_id: str = typer.Argument(..., help="Id of the recording.")):
    """Print a recording as JSON."""
    recording = asyncio.run(build_recording_store().get(recording_id))
    if recording is None:
        _fail(f"Recording not found: {recording_id}")
    typer.echo(json.dumps(recording.to_dict(), indent=2))


@app.command("delete")
def delete_recording(
    recording_id: str = typer.Argument(..., help="Id of the recording."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
):
    """Delete a saved recording."""
    if not yes and not typer.confirm(f"Delete recording {recording_id}?", default=False):
        typer.echo("Aborted.")
        return
    deleted = asyncio.run(build_recording_store().delete(recording_id))
    if not deleted:
        _fail(f"Recording not found: {recording_id}")
    typer.echo(f"Deleted recording {recording_id}")


@app.command("rename")
def rename_recording(
    recording_id: str = typer.Argument(..., help="Id of the recording."),
    name: str = typer.Argument(..., help="New name."),
):
    """Rename a saved recording."""
    updated = asyncio.run(build_recording_store().update(recording_id, {"name": name}))
    if updated is None:
        _fail(f"Recording not found: {recording_id}")
    typer.echo(f"Renamed {recording_id} to '{updated.name}'")


@app.command("export")
def export_recordings(
    recording_ids: Optional[List[str]] = typer.Argument(None, help="Ids to export. Exports everything when omitted."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="File to write. Prints to stdout when omitted."),
):
    """Export recordings as a JSON bundle."""
    bundle = asyncio.run(build_recording_store().export(recording_ids or None))
    payload = json.dumps(bundle.to_dict(), indent=2)
    if output is None:
        typer.echo(payload)
        return
    output.write_text(payload, encoding="utf-8")
    typer.echo(f"Exported {len(bundle.recordings)} recording(s) to {output}")


@app.command("import")
def import_recordings(path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Bundle file to import.")):
    """Import recordings from an exported JSON bundle. Existing ids are skipped."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        _fail(f"{path} is not valid JSON: {e}")
    try:
        result = asyncio.run(build_recording_store().import_bundle(data))
    except ImportFormatError as e:
        logger.warning(f"Rejected import from {path}: {e}")
        _fail(f"Import failed: {e}")
    typer.echo(f"Imported {result['imported']}, skipped {result['skipped']}")


@app.command("usage")
def storage_usage():
    """Show how much storage the recordings use."""
    usage = asyncio.run(build_recording_store().get_storage_usage())
    typer.echo(f"{usage['recordingCount']} recording(s), {usage['formatted']}")
