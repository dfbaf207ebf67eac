import asyncio
import json
import logging
import os
import sys
from dotenv import load_dotenv
from playwright.async_api import async_playwright

from domreplay.continuity import PendingPlaybackStore
from domreplay.playback import PlaybackFailure, RecoveryDecision
from domreplay.session import SessionCoordinator
from domreplay.storage_manager import StorageManager, RecordingStore, ImportFormatError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%dT%H:%M:%S%z'
)

# Engine decisions and handoffs are the interesting part of this script
logging.getLogger("domreplay.playback").setLevel(logging.DEBUG)
logging.getLogger("domreplay.continuity").setLevel(logging.DEBUG)

logger = logging.getLogger(__name__)
DEFAULT_LOG_EXTRA_SCRIPT = {"script_name": "run_example_playback.py"}

script_dir = os.path.dirname(os.path.abspath(__file__))
env_path = os.path.join(script_dir, ".env")
if os.path.exists(env_path):
    load_dotenv(dotenv_path=env_path, override=True)
    logger.info(f"Loaded .env file from: {env_path}")
else:
    logger.warning(f".env file not found at {env_path}. Relying on shell-exported variables.")


def skip_failed_steps(failure: PlaybackFailure) -> RecoveryDecision:
    logger.warning(f"Skipping step {failure.index + 1} ({failure.event.type}): {failure.message}", extra=DEFAULT_LOG_EXTRA_SCRIPT)
    return RecoveryDecision.SKIP


async def main(bundle_path: str, speed: str = "fast"):
    with open(bundle_path, "r", encoding="utf-8") as f:
        bundle = json.load(f)

    storage_manager = StorageManager()
    recordings = RecordingStore(storage_manager)
    try:
        result = await recordings.import_bundle(bundle)
    except ImportFormatError as e:
        logger.error(f"Bundle {bundle_path} rejected: {e}", extra=DEFAULT_LOG_EXTRA_SCRIPT)
        return 1
    logger.info(f"Imported bundle: {result}", extra=DEFAULT_LOG_EXTRA_SCRIPT)

    recording_id = bundle["recordings"][0]["id"]
    headless = os.environ.get("BROWSER_HEADLESS", "false").lower() == "true"

    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=headless)
        try:
            page = await browser.new_page()
            coordinator = SessionCoordinator(
                page,
                recordings,
                pending_store=PendingPlaybackStore(storage_manager),
                on_progress=lambda p: logger.info(f"Step {p['currentStep']}/{p['totalSteps']}"),
                on_decision=skip_failed_steps,
            )
            coordinator.attach()
            await coordinator.play(recording_id, speed=speed)
            state = await coordinator.wait_for_playback()
            logger.info(f"Playback ended in state: {state.value if state else 'unknown'}", extra=DEFAULT_LOG_EXTRA_SCRIPT)
        finally:
            await browser.close()
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python run_example_playback.py <bundle.json> [real-time|fast|instant]")
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1], *sys.argv[2:3])))
