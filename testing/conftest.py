"""
Pytest configuration for reconciliation tests.

Usage:
    pytest testing/
    pytest testing/test_processor.py -v
"""

from collections.abc import Generator

import pytest

from core.logging import end_run, start_run


@pytest.fixture(autouse=True)
def logging_run(request: pytest.FixtureRequest) -> Generator[None, None, None]:
    """Rotate logs at test module boundaries.

    Each test module gets its own logging run, which triggers log rotation
    on first write to each module's log file.
    """
    # Use test module path as run identifier (e.g., "test-testing-test_resolver")
    test_path = request.node.nodeid.split("::")[0]
    test_name = test_path.replace("/", "-").replace(".py", "")
    start_run(f"test-{test_name}")
    yield
    end_run()


@pytest.fixture
def papers_dir(tmp_path):
    """Empty directory for paper sources."""
    path = tmp_path / "output_toml"
    path.mkdir()
    return path


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (run with --runslow)",
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests requiring external services",
    )
