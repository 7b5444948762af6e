import os

import pytest
from fastapi.testclient import TestClient

os.environ["BOT_TOKEN"] = "123456:ABCDEF_TOKEN"
# Settings are cached on import; tests that need other values patch `settings` directly.
os.environ["ALLOW_INSECURE_DEV_AUTH"] = "false"
os.environ["REQUIRE_TELEGRAM_INIT_DATA"] = "false"

from webapp_auth.config import settings  # noqa: E402
from webapp_auth.main import app  # noqa: E402


@pytest.fixture()
def bot_token():
    return settings.bot_token


@pytest.fixture()
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def dev_client():
    """TestClient with insecure dev auth enabled (X-TG-USER-ID accepted)."""
    original = settings.allow_insecure_dev_auth
    settings.allow_insecure_dev_auth = True
    try:
        with TestClient(app) as c:
            yield c
    finally:
        settings.allow_insecure_dev_auth = original
