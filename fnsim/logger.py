import logging
import os

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

custom_theme = Theme(
    {"info": "cyan", "warning": "purple4", "danger": "bold red"}
)
console = Console(
    log_time=False,
    log_path=False,
    theme=custom_theme,
    color_system="256",
    force_terminal=True,
    highlight=True,
    record=True,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            markup=True,
            show_path=False,
            enable_link_path=False,
        )
    ],
)
LOG = logging.getLogger("fnsim")


def debug_mode_enabled():
    """FNSIM_DEBUG_MODE=debug enables debug logs. SCAN_DEBUG_MODE is honoured too."""
    return "debug" in (os.getenv("FNSIM_DEBUG_MODE"), os.getenv("SCAN_DEBUG_MODE"))


# Set logging level
if debug_mode_enabled():
    LOG.setLevel(logging.DEBUG)

DEBUG = logging.DEBUG
