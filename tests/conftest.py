import os
import sys
from datetime import datetime
from pathlib import Path

import pytest
import pytz


ROOT = Path(__file__).resolve().parents[1]

# Prepend the workspace so the in-tree package wins over any installed copy
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

os.environ.setdefault("TESTING", "1")

from time_server.config.settings import clear_settings_cache  # noqa: E402
from time_server.ranges import expression_parser  # noqa: E402


# Wednesday
REFERENCE = pytz.utc.localize(datetime(2026, 1, 21, 10, 30, 0))


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Every test starts from default settings and a fresh default parser"""
    for name in ("DEFAULT_TIMEZONE", "LOG_LEVEL", "ENVIRONMENT", "ALLOWED_ORIGINS"):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    expression_parser._expression_parser = None
    yield
    clear_settings_cache()
    expression_parser._expression_parser = None


@pytest.fixture
def reference():
    return REFERENCE
