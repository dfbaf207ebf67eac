import asyncio
import logging
from typing import Optional

import typer
from playwright.async_api import async_playwright, Error as PlaywrightError

from .common import build_pending_store, build_recording_store, build_storage_manager
from .config import get_settings
from ..event_capture.exceptions import EventCaptureError
from ..playback.types import PlaybackFailure, PlaybackState, Progress, RecoveryDecision
from ..schemas.recording import PlaybackSpeed
from ..session.coordinator import SessionCoordinator
from ..session.exceptions import SessionError

logger = logging.getLogger(__name__)

RECORD_HELP = "Commands: [p]ause, [r]esume, Enter to stop and save."


def print_progress(progress: Progress) -> None:
    typer.echo(f"Step {progress['currentStep']}/{progress['totalSteps']}")


async def ask_recovery(failure: PlaybackFailure) -> RecoveryDecision:
    """Asks on the terminal whether to skip the failed step or abort playback."""
    typer.secho(f"Step {failure.index + 1} ({failure.event.type}) failed: {failure.message}", fg=typer.colors.YELLOW)
    skip = await asyncio.to_thread(typer.confirm, "Skip this step and continue?", default=True)
    return RecoveryDecision.SKIP if skip else RecoveryDecision.ABORT


async def _record(url: str, name: Optional[str], headless: bool) -> None:
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=headless)
        try:
            page = await browser.new_page()
            await page.goto(url)
            coordinator = SessionCoordinator(page, build_recording_store())
            session = await coordinator.start_recording(name=name)
            typer.echo(f"Recording '{session.recording.name}' on {url}. {RECORD_HELP}")
            while True:
                command = (await asyncio.to_thread(input)).strip().lower()
                if command == "p":
                    coordinator.pause_recording()
                    typer.echo("Paused.")
                elif command == "r":
                    coordinator.resume_recording()
                    typer.echo("Resumed.")
                elif command == "":
                    break
                else:
                    typer.echo(RECORD_HELP)
            recording = await coordinator.stop_recording()
            typer.echo(f"Saved {recording.id} with {len(recording.events)} events")
        finally:
            await browser.close()


async def _play(recording_id: str, speed: Optional[PlaybackSpeed], headless: bool) -> PlaybackState:
    storage_manager = build_storage_manager()
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=headless)
        try:
            page = await browser.new_page()
            coordinator = SessionCoordinator(
                page,
                build_recording_store(storage_manager),
                pending_store=build_pending_store(storage_manager),
                on_progress=print_progress,
                on_decision=ask_recovery,
            )
            coordinator.attach()
            await coordinator.play(recording_id, speed=speed)
            state = await coordinator.wait_for_playback()
            coordinator.detach()
            return state
        finally:
            await browser.close()


def record_command(
    url: str = typer.Argument(..., help="Page to open and record on."),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Recording name. Defaults to 'Recording <date time>'."),
    headless: bool = typer.Option(False, "--headless", help="Run the browser without a window."),
):
    """Open a browser on URL and record interactions until Enter is pressed."""
    try:
        asyncio.run(_record(url, name, headless or get_settings().BROWSER_HEADLESS))
    except (EventCaptureError, SessionError, PlaywrightError) as e:
        logger.error(f"Recording failed: {e}", exc_info=True)
        typer.secho(f"Recording failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def play_command(
    recording_id: str = typer.Argument(..., help="Id of the recording to replay."),
    speed: Optional[PlaybackSpeed] = typer.Option(None, "--speed", "-s", help="Playback speed. Defaults to the stored setting."),
    headless: bool = typer.Option(False, "--headless", help="Run the browser without a window."),
):
    """Replay a saved recording in a fresh browser."""
    try:
        state = asyncio.run(_play(recording_id, speed, headless or get_settings().BROWSER_HEADLESS))
    except (SessionError, PlaywrightError) as e:
        logger.error(f"Playback failed: {e}", exc_info=True)
        typer.secho(f"Playback failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Playback {state.value if state else 'finished'}")
    if state is PlaybackState.ABORTED:
        raise typer.Exit(code=1)
