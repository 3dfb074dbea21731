"""Module-based logging with run-based rotation.

Per-module log files that rotate at run boundaries (one fleet pass or one
test module).

Usage:
    # At entry points (fleet runner, tests):
    from core.logging import configure_logging, start_run, end_run

    configure_logging("logs")
    start_run("fleet-20260101-120000")
    try:
        # ... do work ...
    finally:
        end_run()

    # In modules:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("This goes to the appropriate module log file")

Log files are created in logs/:
    - logs/reconcile.log, logs/bank.log, logs/fleet.log, etc. (per-module)
    - logs/failed-questions.log (generated / manual / errored questions)
    - logs/run-3p.log (all third-party libraries)
    - logs/*.previous.log (previous run's logs)
"""

from core.logging.handlers import ModuleDispatchHandler, ProjectFilter, ThirdPartyHandler
from core.logging.run_manager import (
    FAILED_QUESTIONS_LOGGER,
    MODULE_TO_LOG,
    end_run,
    get_current_run_id,
    is_project_logger,
    module_to_log_name,
    start_run,
)
from core.logging.setup import configure_logging

__all__ = [
    "configure_logging",
    "start_run",
    "end_run",
    "get_current_run_id",
    "module_to_log_name",
    "is_project_logger",
    "ModuleDispatchHandler",
    "ProjectFilter",
    "ThirdPartyHandler",
    "MODULE_TO_LOG",
    "FAILED_QUESTIONS_LOGGER",
]
