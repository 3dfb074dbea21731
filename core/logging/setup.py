"""Root logger wiring for command-line entry points."""

import logging
import sys
from pathlib import Path

from core.logging.handlers import ModuleDispatchHandler, ProjectFilter, ThirdPartyHandler

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"

_installed: list[logging.Handler] = []


def configure_logging(
    log_dir: Path | str = "logs",
    level: int = logging.INFO,
    console: bool = True,
) -> None:
    """Install console and per-module file handlers on the root logger.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        log_dir: Directory for per-module and run-3p log files
        level: Root logger level
        console: Also echo records to stderr
    """
    log_dir = Path(log_dir)
    root = logging.getLogger()

    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()

    formatter = logging.Formatter(FILE_FORMAT)

    module_handler = ModuleDispatchHandler(log_dir)
    module_handler.setFormatter(formatter)
    module_handler.addFilter(ProjectFilter(project=True))
    _installed.append(module_handler)

    third_party = ThirdPartyHandler(log_dir)
    third_party.setFormatter(formatter)
    third_party.addFilter(ProjectFilter(project=False))
    _installed.append(third_party)

    if console:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        _installed.append(stream_handler)

    for handler in _installed:
        root.addHandler(handler)
    root.setLevel(level)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
