import logging

import pytest

from structmd.config import ConfigManager, EditorSettings, get_editor_config


def test_packaged_defaults_are_loaded():
    manager = ConfigManager()
    editor = manager.get_editor_config()
    assert editor["ordered_numbering"] == "sequential"
    assert editor["code_indent"] == 4
    assert manager.get_logging_config()["version"] == 1
    assert get_editor_config() == EditorSettings()


def test_manager_is_shared_until_reset():
    first = ConfigManager()
    assert ConfigManager() is first
    ConfigManager.reset()
    assert ConfigManager() is not first


def test_user_overrides_are_merged(tmp_path, monkeypatch):
    config_dir = tmp_path / "user"
    config_dir.mkdir()
    (config_dir / "editor.yml").write_text("ordered_numbering: one\ncode_indent: 2\n", encoding="utf-8")
    monkeypatch.setenv("STRUCTMD_CONFIG_DIR", str(config_dir))
    ConfigManager.reset()

    settings = get_editor_config()
    assert settings.ordered_numbering == "one"
    assert settings.code_indent == 2
    assert settings.markdown_mime == "text/x-any-md"


def test_broken_user_file_keeps_the_defaults(tmp_path, monkeypatch, caplog):
    config_dir = tmp_path / "user"
    config_dir.mkdir()
    (config_dir / "editor.yml").write_text("- just\n- a list\n", encoding="utf-8")
    monkeypatch.setenv("STRUCTMD_CONFIG_DIR", str(config_dir))
    ConfigManager.reset()

    with caplog.at_level(logging.ERROR, logger="structmd.config.manager"):
        settings = get_editor_config()
    assert settings == EditorSettings()
    assert any("Could not parse user config" in record.getMessage() for record in caplog.records)


def test_reload_picks_up_changes(tmp_path, monkeypatch):
    config_dir = tmp_path / "user"
    config_dir.mkdir()
    monkeypatch.setenv("STRUCTMD_CONFIG_DIR", str(config_dir))
    ConfigManager.reset()
    manager = ConfigManager()
    assert manager.get_editor_settings().input_rules is True

    (config_dir / "editor.yml").write_text("input_rules: false\n", encoding="utf-8")
    manager.reload()
    assert manager.get_editor_settings().input_rules is False


@pytest.mark.parametrize(
    "data, field, expected",
    [
        ({"ordered_numbering": "roman"}, "ordered_numbering", "sequential"),
        ({"ordered_numbering": "ONE"}, "ordered_numbering", "one"),
        ({"code_indent": "wide"}, "code_indent", 4),
        ({"code_indent": 0}, "code_indent", 1),
        ({"url_schemes": ["HTTPS"]}, "url_schemes", ["https"]),
        ({"default_code_language": None}, "default_code_language", "plaintext"),
    ],
)
def test_settings_validation(data, field, expected):
    assert getattr(EditorSettings.from_mapping(data), field) == expected
