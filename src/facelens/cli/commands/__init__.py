"""CLI command handlers."""

from facelens.cli.commands.image import run_image
from facelens.cli.commands.info import run_info
from facelens.cli.commands.live import run_live

__all__ = [
    "run_live",
    "run_image",
    "run_info",
]
