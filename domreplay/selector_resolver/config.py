import os
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# Environment variable names
FIND_TIMEOUT_ENV_VAR = "DOMREPLAY_FIND_TIMEOUT_MS"
VISIBILITY_TIMEOUT_ENV_VAR = "DOMREPLAY_VISIBILITY_TIMEOUT_MS"

# Default values
DEFAULT_FIND_TIMEOUT_MS = 5000
DEFAULT_VISIBILITY_TIMEOUT_MS = 5000
FRAME_INTERVAL_MS = 16  # roughly one animation frame at 60Hz

# Test-id style attributes; the second is only used when the first is absent
TEST_ID_ATTRIBUTE = "data-testid"
DATA_ID_ATTRIBUTE = "data-id"


def _get_int_env(env_var: str, default: int) -> int:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer '{raw}' in env var {env_var}. Using default {default}.")
        return default


def get_find_timeout_ms(timeout_override: Optional[int] = None) -> int:
    """Gets the element lookup timeout from override, environment variable, or default."""
    if timeout_override is not None:
        return timeout_override
    return _get_int_env(FIND_TIMEOUT_ENV_VAR, DEFAULT_FIND_TIMEOUT_MS)


def get_visibility_timeout_ms(timeout_override: Optional[int] = None) -> int:
    """Gets the visibility wait timeout from override, environment variable, or default."""
    if timeout_override is not None:
        return timeout_override
    return _get_int_env(VISIBILITY_TIMEOUT_ENV_VAR, DEFAULT_VISIBILITY_TIMEOUT_MS)
