import os
import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Environment variable names
EXCLUDE_SELECTOR_ENV_VAR = "DOMREPLAY_EXCLUDE_SELECTOR"

# Default values
DEFAULT_EXCLUDE_SELECTOR = ".browser-recorder-sidebar"
INPUT_DEBOUNCE_MS = 300
SCROLL_THROTTLE_MS = 200
MIN_EVENT_INTERVAL_MS = 50
MAX_TARGET_TEXT_LENGTH = 100

# Keys recorded when pressed together with ctrl or meta (clipboard and undo shortcuts)
SHORTCUT_KEYS = frozenset({"a", "c", "v", "x", "z", "y"})

BINDING_NAME_PREFIX = "__domreplayCapture"


def get_exclude_selector(selector_override: Optional[str] = None) -> str:
    """Gets the CSS selector of the control surface whose events are never captured."""
    if selector_override:
        logger.debug(f"Using capture exclusion selector from override: {selector_override}")
        return selector_override
    selector = os.getenv(EXCLUDE_SELECTOR_ENV_VAR, DEFAULT_EXCLUDE_SELECTOR)
    logger.debug(f"Using capture exclusion selector: {selector} (from env var {EXCLUDE_SELECTOR_ENV_VAR} or default)")
    return selector
