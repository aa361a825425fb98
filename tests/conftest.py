import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'stategate' and tests/ importable as 'helpers'
for p in (SRC_ROOT, REPO_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from tests.helpers.cache_utils import reset_stategate_caches


@pytest.fixture(autouse=True)
def _isolate_config(tmp_path, monkeypatch):
    """Run every test from an empty project with fresh config caches.

    Developer shells may export STATEGATE_* overrides; they must never leak
    into test expectations.
    """
    for key in list(os.environ):
        if key.startswith("STATEGATE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_stategate_caches()
    yield
    reset_stategate_caches()


@pytest.fixture
def project_config_dir(tmp_path):
    """The `.stategate/config` directory of the isolated project."""
    config_dir = tmp_path / ".stategate" / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir
