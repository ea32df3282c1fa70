"""Test configuration."""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pytest import Config

# Tests must never reach a real database, cache or geocoding provider
os.environ["TESTING"] = "true"

# Load .env.test file for tests when present
env_test_file = Path(__file__).parent.parent / ".env.test"
if env_test_file.exists():
    load_dotenv(env_test_file, override=True)

from app.core.logging import configure_logging  # noqa: E402

pytest_plugins: List[str] = [
    "tests.fixtures.stores",
    "tests.fixtures.api",
]


def pytest_configure(config: Config) -> None:
    """Configure pytest.

    Args:
        config: Pytest configuration object
    """
    # Configure logging for test environment
    configure_logging(testing=True)
