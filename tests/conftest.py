"""Test configuration helpers."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import pytest

# Explicitly opt-in to the async plugins we rely on. Some execution environments
# disable plugin auto-discovery via ``PYTEST_DISABLE_PLUGIN_AUTOLOAD`` which
# prevents ``pytest-asyncio`` and AnyIO's plugin from being loaded even if the
# packages are installed.
pytest_plugins = ("anyio", "pytest_asyncio")

# Ensure the repository root is importable as a module path so that ``import core``
# and other absolute imports used throughout the codebase succeed when tests are
# executed from arbitrary working directories.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Never talk to a real relay or inbox from the test suite
os.environ.setdefault("EMAIL_MONITORING_ENABLED", "false")
os.environ.setdefault("SMS_ENABLED", "false")


@pytest.fixture
def anyio_backend() -> str:
    """Default AnyIO backend used when tests do not override the fixture."""

    return "asyncio"


@pytest.fixture(scope="session", autouse=True)
def suppress_asyncio_debug_logging() -> None:
    """Prevent asyncio debug logs from writing to closed pytest capture streams."""

    logger = logging.getLogger("asyncio")
    if logger.getEffectiveLevel() < logging.INFO:
        logger.setLevel(logging.INFO)
