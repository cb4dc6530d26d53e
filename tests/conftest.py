import pytest

from release_tracker.config import get_settings

_ENV_VARS = (
    "ASANA_TOKEN",
    "ASANA_WORKSPACE_ID",
    "ASANA_BASE_URL",
    "ASANA_SECRET_NAME",
    "ASANA_TIMEOUT_SECONDS",
    "TASK_BATCH_SIZE",
    "TASK_BATCH_DELAY_MS",
    "UPCOMING_WINDOW_DAYS",
    "CORS_ALLOW_ORIGIN",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
