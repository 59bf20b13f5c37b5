import json
from pathlib import Path

import pytest

from folderise import config


def test_parse_options_requires_folder():
    with pytest.raises(config.ConfigError):
        config.parse_options({"title": "no folder"})


def test_parse_options_defaults(tmp_path: Path):
    settings = config.parse_options({"folder": str(tmp_path)})

    assert settings.folder == tmp_path.resolve()
    assert settings.title == ""
    assert settings.watch is True
    assert settings.refresh is True
    assert settings.plugins == ()
    assert settings.timeout == config.DEFAULT_TIMEOUT


def test_parse_options_honours_explicit_false(tmp_path: Path):
    settings = config.parse_options({"folder": str(tmp_path), "watch": False, "refresh": "false"})

    assert settings.watch is False
    assert settings.refresh is False


def test_plugin_specs_and_token_keys(tmp_path: Path):
    settings = config.parse_options(
        {
            "folder": str(tmp_path),
            "plugins": [
                {"name": "folderise.contrib.clock", "options": {"format": "%Y"}},
                {"name": "some_module", "token": "other"},
                "plain_name",
            ],
        }
    )

    keys = [spec.key for spec in settings.plugins]
    assert keys == ["clock", "other", "plain_name"]
    assert settings.plugins[0].options == {"format": "%Y"}


def test_invalid_plugins_raise(tmp_path: Path):
    with pytest.raises(config.ConfigError):
        config.parse_options({"folder": str(tmp_path), "plugins": {"name": "x"}})
    with pytest.raises(config.ConfigError):
        config.parse_options({"folder": str(tmp_path), "plugins": [{"options": {}}]})


def test_load_settings_file(tmp_path: Path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"folder": "/srv/site", "port": 9000}), encoding="utf-8")

    assert config.load_settings_file(path) == {"folder": "/srv/site", "port": 9000}

    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(config.ConfigError):
        config.load_settings_file(path)

    with pytest.raises(config.ConfigError):
        config.load_settings_file(tmp_path / "missing.json")


def test_resolve_options_priority(monkeypatch, tmp_path: Path):
    monkeypatch.setenv(config.FOLDER_ENV, str(tmp_path / "env"))
    monkeypatch.delenv(config.PORT_ENV, raising=False)

    merged = config.resolve_options({"folder": "/from/file", "title": "t"})
    assert merged["folder"] == str(tmp_path / "env")
    assert merged["title"] == "t"

    merged = config.resolve_options(
        {"folder": "/from/file"},
        cli_options={"folder": "/from/cli", "title": None},
    )
    assert merged["folder"] == "/from/cli"
    assert "title" not in merged
