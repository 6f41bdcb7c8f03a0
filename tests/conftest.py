from __future__ import annotations

import pytest

from aws_blocks import app, config, logging_utils

_AWS_ENV = (
    "AWS_PROFILE",
    "AWS_ENDPOINT_URL",
    "AWS_ENDPOINT_URL_S3",
    "AWS_ENDPOINT_URL_STS",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "load_dotenv", lambda **_: None)
    for key in (*config.ENV_KEYS.values(), *_AWS_ENV):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("AWS_EC2_METADATA_DISABLED", "true")
    config._load_settings_cached.cache_clear()
    app.get_app_context.cache_clear()
    yield
    logging_utils.reset_logging()
    config._load_settings_cached.cache_clear()
    app.get_app_context.cache_clear()
