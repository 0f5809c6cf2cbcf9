"""CLI entry point for the verification-code extractor."""

import logging
import os

import click
from dotenv import load_dotenv

from mailcode.agent.service import ServiceConfig

logger = logging.getLogger(__name__)


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Find verification codes and links in saved Gmail messages."""
    load_dotenv()
    raw_level = os.environ.get("MAILCODE_LOG_LEVEL", "WARNING").strip().upper()
    level = raw_level if raw_level in logging.getLevelNamesMapping() else "WARNING"
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )
    if level != raw_level:
        logger.warning("Invalid MAILCODE_LOG_LEVEL %r; defaulting to WARNING", raw_level)
    ctx.obj = ServiceConfig.from_env()


# Import and register commands after cli is defined to avoid circular imports.
from mailcode.cli.commands import extract, inspect  # noqa: E402

cli.add_command(extract)
cli.add_command(inspect)
