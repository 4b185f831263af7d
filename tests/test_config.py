from pathlib import Path

import pytest

from termchat.config import Config
from termchat.errors import ConfigError
from termchat.util.colors import GREEN, YELLOW


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "TERMCHAT_CONFIG_FILE",
        "TERMCHAT_BIND",
        "TERMCHAT_PORT",
        "TERMCHAT_LOG_LEVEL",
        "TERMCHAT_MAX_HISTORY",
        "TERMCHAT_MAX_USERNAME_LENGTH",
        "TERMCHAT_MAX_MESSAGE_LENGTH",
        "TERMCHAT_SEND_TIMEOUT",
        "TERMCHAT_STATIC_DIR",
        "TERMCHAT_GREETING",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = Config.load()
    assert config.port == 4000
    assert config.bind == "0.0.0.0"
    assert config.max_history == 100
    assert config.max_username_length == 16
    assert config.max_message_length == 512
    assert config.static_dir == Path("frontend")


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("TERMCHAT_PORT", "8080")
    monkeypatch.setenv("TERMCHAT_MAX_HISTORY", "10")
    monkeypatch.setenv("TERMCHAT_SEND_TIMEOUT", "1.5")
    monkeypatch.setenv("TERMCHAT_LOG_LEVEL", "DEBUG")
    config = Config.load()
    assert config.port == 8080
    assert config.max_history == 10
    assert config.send_timeout == 1.5
    assert config.log_level == "debug"


def test_yaml_file_and_env_precedence(monkeypatch, tmp_path):
    path = tmp_path / "termchat.yaml"
    path.write_text(
        "port: 5000\nmax_history: 20\ngreeting: hello there\npalette: [green, yellow]\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("TERMCHAT_CONFIG_FILE", str(path))
    monkeypatch.setenv("TERMCHAT_PORT", "6000")
    config = Config.load()
    assert config.port == 6000
    assert config.max_history == 20
    assert config.greeting == "hello there"
    assert config.palette == [GREEN, YELLOW]


def test_missing_yaml_file_is_ignored(monkeypatch, tmp_path):
    monkeypatch.setenv("TERMCHAT_CONFIG_FILE", str(tmp_path / "nope.yaml"))
    assert Config.load().port == 4000


@pytest.mark.parametrize(
    "content",
    ["port: [unclosed\n", "- just\n- a list\n", "palette: [mauve]\n", "port: eighty\n"],
)
def test_bad_yaml_raises(monkeypatch, tmp_path, content):
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")
    monkeypatch.setenv("TERMCHAT_CONFIG_FILE", str(path))
    with pytest.raises(ConfigError):
        Config.load()


def test_bad_env_value_names_variable(monkeypatch):
    monkeypatch.setenv("TERMCHAT_MAX_HISTORY", "lots")
    with pytest.raises(ConfigError, match="TERMCHAT_MAX_HISTORY"):
        Config.load()


@pytest.mark.parametrize(
    "field,value",
    [("port", 0), ("max_history", 0), ("max_message_length", -1), ("send_timeout", 0.0), ("palette", []), ("log_level", "warn")],
)
def test_validate_rejects_out_of_range(field, value):
    with pytest.raises(ConfigError):
        Config(**{field: value}).validate()


def test_unknown_log_level_is_rejected(monkeypatch):
    monkeypatch.setenv("TERMCHAT_LOG_LEVEL", "warn")
    with pytest.raises(ConfigError, match="TERMCHAT_LOG_LEVEL"):
        Config.load()
