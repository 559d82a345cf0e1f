"""
Tests for import order independence.

Each module is imported first in a fresh interpreter, so a cycle between
the store and the services cannot hide behind an earlier import.
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.mark.parametrize(
    "module",
    [
        "app.repositories.chain_store",
        "app.services.chain_client",
        "app.services.chain_walker",
        "app.services.account_ranking",
        "app.api",
        "jobs.scheduler",
    ],
)
def test_module_imports_first(module):
    env = dict(os.environ)
    env.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    env.setdefault("NODE_RPC_URLS", "1=http://localhost:8027")

    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        cwd=PROJECT_ROOT,
        env=env,
        capture_output=True,
        text=True,
        timeout=60,
    )

    assert result.returncode == 0, result.stderr
