"""Run-based log rotation manager.

A "run" is one fleet pass (or one test module). The first record written to
each log file inside a run rotates that file, so every log holds exactly the
current run plus the previous one.

Usage:
    from core.logging import start_run, end_run

    start_run("fleet-20260101-120000")
    try:
        # ... reconcile papers ...
    finally:
        end_run()
"""

from contextvars import ContextVar

# ContextVars so concurrent runs in one process never share rotation state
_current_run_id: ContextVar[str | None] = ContextVar("current_run_id", default=None)
_rotated_this_run: ContextVar[set[str] | None] = ContextVar("rotated_this_run", default=None)

# Module names never change, so resolutions are cached across runs
_module_log_cache: dict[str, str] = {}

FAILED_QUESTIONS_LOGGER = "workflows.paper_reconcile.failed_questions"

# Longest-prefix match from logger name to log file name.
# Unmapped project modules go to "misc.log".
MODULE_TO_LOG = {
    # Reconciliation workflow
    FAILED_QUESTIONS_LOGGER: "failed-questions",
    "workflows.paper_reconcile.fleet": "fleet",
    "workflows.paper_reconcile.finalizer": "finalizer",
    "workflows.paper_reconcile": "reconcile",
    "workflows.shared": "workflows-shared",
    # Core
    "core.bank": "bank",
    "core.utils": "utils",
    "core.config": "config",
    "core.logging": "logging-internal",
    # Entry points and tests
    "scripts": "scripts",
    "testing": "testing",
}

_SORTED_PREFIXES = sorted(MODULE_TO_LOG.keys(), key=len, reverse=True)

# Top-level package names that belong to this project. Everything else is
# considered third-party and goes to run-3p.log.
PROJECT_PACKAGES = ("core", "workflows", "scripts", "testing", "__main__")


def start_run(run_id: str) -> None:
    """Signal start of new run.

    Safe to call repeatedly; each call resets rotation tracking.

    Args:
        run_id: Unique identifier for this run (e.g., fleet timestamp, test module)
    """
    _current_run_id.set(run_id)
    _rotated_this_run.set(set())


def end_run() -> None:
    """Signal end of run.

    Rotation is driven by start_run(), so a missed end_run() after a crash
    does not affect correctness.
    """
    _current_run_id.set(None)
    _rotated_this_run.set(None)


def get_current_run_id() -> str | None:
    """Get the current run ID, if any."""
    return _current_run_id.get()


def should_rotate(log_name: str) -> bool:
    """Check (and record) whether a log file needs rotating in this run.

    Args:
        log_name: The log file name (without .log extension)

    Returns:
        True on the first call for log_name inside an active run, else False
    """
    run_id = _current_run_id.get()
    rotated = _rotated_this_run.get()

    if run_id is None or rotated is None:
        return False

    if log_name in rotated:
        return False

    rotated.add(log_name)
    return True


def is_project_logger(logger_name: str) -> bool:
    """Check whether a logger name belongs to one of this project's packages."""
    top = logger_name.split(".", 1)[0]
    return top in PROJECT_PACKAGES


def module_to_log_name(module_name: str) -> str:
    """Resolve a logger name to its log file name.

    Args:
        module_name: The __name__ of the module (e.g., "core.bank.search")

    Returns:
        Log file name without extension (e.g., "bank")
    """
    if module_name not in _module_log_cache:
        _module_log_cache[module_name] = _compute_log_name(module_name)
    return _module_log_cache[module_name]


def _compute_log_name(module_name: str) -> str:
    for prefix in _SORTED_PREFIXES:
        if module_name == prefix or module_name.startswith(prefix + "."):
            return MODULE_TO_LOG[prefix]
    return "misc"
