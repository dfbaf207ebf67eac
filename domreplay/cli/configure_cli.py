import typer
from pathlib import Path
import logging

from .common import build_storage_manager
from .config import get_settings

logger = logging.getLogger(__name__)

app = typer.Typer(name="configure", help="Manage CLI and storage configuration.", no_args_is_help=True)

ENV_EXAMPLE_CONTENT = """# .env - Fill in your actual values
# S3 storage (optional - recordings are kept locally when no bucket is set)
STORAGE_S3_BUCKET=
STORAGE_S3_REGION=us-east-1

# Local storage directory
STORAGE_LOCAL_BASE_PATH=./domreplay_data

# Browser
BROWSER_HEADLESS=false

# CLI Defaults
LOG_LEVEL=INFO
"""


@app.command("init")
def configure_init():
    """Initialize project configuration. Checks for a .env file and provides guidance."""
    logger.debug("Starting configure init command.")
    env_path = Path(".env")
    if env_path.exists():
        typer.echo(f"Found existing .env file at: {env_path.resolve()}")
        logger.info(f"Existing .env file found at {env_path.resolve()}")
        typer.echo("Please ensure it contains the storage settings you need (STORAGE_S3_BUCKET, STORAGE_LOCAL_BASE_PATH).")
    else:
        typer.echo("No .env file found.")
        logger.info(".env file not found.")
        create_env = typer.confirm("Would you like to create a sample .env file in the current directory?", default=True)
        if create_env:
            try:
                with open(env_path, "w") as f:
                    f.write(ENV_EXAMPLE_CONTENT)
                typer.echo(f"Successfully created .env file at: {env_path.resolve()}")
                logger.info(f".env file created at {env_path.resolve()}")
            except IOError as e:
                logger.error(f"IOError creating .env file: {e}", exc_info=True)
                typer.secho(f"Error creating .env file: {e}", fg=typer.colors.RED, err=True)
        else:
            typer.echo("Skipping .env creation. You can create it manually with the following content:")
            logger.info("User skipped .env creation.")
            typer.echo(ENV_EXAMPLE_CONTENT)

    typer.echo("\nConfiguration setup guide:")
    typer.echo("1. Leave STORAGE_S3_BUCKET empty to keep recordings under STORAGE_LOCAL_BASE_PATH.")
    typer.echo("2. For S3, AWS credentials are read from the standard AWS environment variables or config files.")
    typer.echo("3. LOG_LEVEL and BROWSER_HEADLESS can also be set in .env or will use defaults.")


@app.command("show")
def configure_show():
    """Show where recordings and pending playbacks are stored with the current settings."""
    storage_manager = build_storage_manager()
    if storage_manager.use_s3:
        typer.echo(f"Storage: s3://{storage_manager.s3_bucket_name} ({storage_manager.s3_region_name})")
    else:
        typer.echo(f"Storage: local ({storage_manager.local_base_path})")
    typer.echo(f"Browser headless: {get_settings().BROWSER_HEADLESS}")
