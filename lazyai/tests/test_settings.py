import json
import logging

import pytest
import yaml
from pydantic import ValidationError

from lazyai.config.settings import Settings, load_settings
from lazyai.domain.exceptions import ConfigError
from lazyai.infrastructure.logging.logger import JsonFormatter, setup_logger


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in ("LAZYAI_CONFIG_FILE", "LAZYAI_HTTP_TIMEOUT", "LAZYAI_STREAMING_CONTRACT"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults(tmp_path):
    settings = load_settings(tmp_path / "missing.yml")
    assert settings.skydeck_base_url == "https://admin.skydeck.ai"
    assert settings.skydeck_model_id == 4094
    assert settings.http_timeout == 30.0
    assert settings.streaming_contract == "query"
    assert settings.attach_refresh_cookie is False


def test_yaml_settings_section(tmp_path):
    cfg = tmp_path / ".lazyai.yml"
    cfg.write_text(
        yaml.safe_dump({"skydeck": {"accessToken": "a"}, "settings": {"http_timeout": 12, "streaming_contract": "json"}}),
        encoding="utf-8",
    )
    settings = load_settings(cfg)
    assert settings.config_file == cfg
    assert settings.http_timeout == 12.0
    assert settings.streaming_contract == "json"


def test_env_overrides_yaml(tmp_path, monkeypatch):
    cfg = tmp_path / ".lazyai.yml"
    cfg.write_text(yaml.safe_dump({"settings": {"http_timeout": 12}}), encoding="utf-8")
    monkeypatch.setenv("LAZYAI_HTTP_TIMEOUT", "45")
    assert load_settings(cfg).http_timeout == 45.0


def test_invalid_streaming_contract(tmp_path):
    with pytest.raises(ValidationError):
        load_settings(tmp_path / "missing.yml", streaming_contract="websocket")


def test_json_formatter_includes_extra():
    record = logging.LogRecord("lazyai", logging.INFO, __file__, 1, "skydeck.submit", None, None)
    record.extra = {"conversation_id": 42}
    payload = json.loads(JsonFormatter().format(record))
    assert payload["msg"] == "skydeck.submit"
    assert payload["conversation_id"] == 42
    assert payload["level"] == "INFO"


def test_refresh_cookie_description_names_upstream_contract():
    description = Settings.model_fields["attach_refresh_cookie"].description
    assert "eastagile_refresh" in description
    assert "true" in description


def test_setup_logger_unwritable_dir_is_config_error(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    settings = load_settings(tmp_path / "missing.yml", log_dir=str(blocker / "logs"))
    with pytest.raises(ConfigError) as exc:
        setup_logger(settings)
    assert exc.value.code == "LOG_SETUP_ERROR"
