import os
import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Environment variable names
STORAGE_S3_BUCKET_ENV_VAR = "STORAGE_S3_BUCKET"
STORAGE_S3_REGION_ENV_VAR = "STORAGE_S3_REGION"
STORAGE_LOCAL_BASE_PATH_ENV_VAR = "STORAGE_LOCAL_BASE_PATH"

# Default values
DEFAULT_S3_REGION = "us-east-1"
DEFAULT_LOCAL_BASE_PATH = "./domreplay_data"


def get_s3_bucket_name(bucket_override: Optional[str] = None) -> Optional[str]:
    """Bucket for recordings and pending playbacks; None means local storage."""
    if bucket_override:
        logger.debug(f"Using S3 bucket from override: {bucket_override}")
        return bucket_override
    bucket_name = os.getenv(STORAGE_S3_BUCKET_ENV_VAR)
    if bucket_name:
        logger.debug(f"Using S3 bucket from env var {STORAGE_S3_BUCKET_ENV_VAR}: {bucket_name}")
    return bucket_name


def get_s3_region(region_override: Optional[str] = None) -> str:
    if region_override:
        return region_override
    return os.getenv(STORAGE_S3_REGION_ENV_VAR, DEFAULT_S3_REGION)


def get_local_base_path(path_override: Optional[str] = None) -> str:
    """Resolves the local storage directory to an absolute path and makes sure it exists."""
    base_path = path_override or os.getenv(STORAGE_LOCAL_BASE_PATH_ENV_VAR, DEFAULT_LOCAL_BASE_PATH)
    abs_base_path = os.path.abspath(base_path)
    try:
        os.makedirs(abs_base_path, exist_ok=True)
    except OSError as e:
        # Left to fail on first use; the directory may be provisioned separately.
        logger.error(f"Could not create local base path {abs_base_path}: {e}", exc_info=True)
    logger.debug(f"Using local base path: {abs_base_path}")
    return abs_base_path
