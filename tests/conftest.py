import sys
from pathlib import Path

import pytest

# Ensure `reviews_connect` is importable when running pytest from the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from reviews_connect.core import config  # noqa: E402


@pytest.fixture(autouse=True)
def settings_env(monkeypatch):
    monkeypatch.setenv("NONCE_SECRET", "test-secret")
    monkeypatch.setenv("PROVIDER_BASE_URL", "https://provider.test/api")
    monkeypatch.setenv("HOST_URL", "http://host.test")
    monkeypatch.delenv("SIBLING_PROVIDER", raising=False)
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()
