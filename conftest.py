import sys
from pathlib import Path

import pytest

# Ensure repo root on sys.path for imports from anywhere in tests tree.
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _clean_rack_env(monkeypatch):
    # Config is read from the environment at call time; keep tests on defaults.
    for name in ("RACK_HISTORY_MAX_DEPTH", "RACK_LOG_LEVEL", "RACK_DEFAULT_HEIGHT", "RACK_DEFAULT_WIDTH"):
        monkeypatch.delenv(name, raising=False)
