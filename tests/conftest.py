"""Shared test fixtures.

History, branch and HTTP tests run the real ``git`` binary against
repositories created under ``tmp_path``.  They are marked
``@pytest.mark.integration`` and skipped when git is not installed.  The SSH
sandbox is never contacted: sandbox tests use an in-memory command channel.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterator

import pytest

from codeyard.workspace_runtime.settings import get_settings

_GIT_AVAILABLE = shutil.which("git") is not None


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if _GIT_AVAILABLE:
        return
    skip_git = pytest.mark.skip(reason="git binary not available")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_git)


@pytest.fixture
def clean_settings_env() -> Iterator[None]:
    """Remove CODEYARD_* variables for the test and restore them afterwards."""
    saved = {key: value for key, value in os.environ.items() if key.startswith("CODEYARD_")}
    for key in saved:
        del os.environ[key]
    get_settings.cache_clear()
    yield
    for key in [key for key in os.environ if key.startswith("CODEYARD_")]:
        del os.environ[key]
    os.environ.update(saved)
    get_settings.cache_clear()
