"""Runtime configuration for the chat server.

Values come from ``TERMCHAT_*`` environment variables, then an optional YAML
file named by ``TERMCHAT_CONFIG_FILE``, then the defaults below.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .core.dispatcher import DEFAULT_GREETING
from .errors import ConfigError
from .util.colors import PALETTE, parse_color


ENV_PREFIX = "TERMCHAT_"
LOG_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name, None)
    if value is None:
        return default
    stripped = value.strip()
    if stripped == "":
        return default
    return stripped


def _get_int(name: str, default: int) -> int:
    value = _get_env(name)
    if value is None:
        return default
    try:
        return int(float(value))
    except ValueError as exc:
        raise ConfigError(f"Environment value for {ENV_PREFIX + name!r} must be an integer") from exc


def _get_float(name: str, default: float) -> float:
    value = _get_env(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigError(f"Environment value for {ENV_PREFIX + name!r} must be a float") from exc


def _load_yaml(path: Optional[Path]) -> Dict[str, Any]:
    if path is None or not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse config file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


@dataclass(frozen=True)
class Config:
    bind: str = "0.0.0.0"
    port: int = 4000
    log_level: str = "info"
    max_history: int = 100
    max_username_length: int = 16
    max_message_length: int = 512
    send_timeout: float = 5.0
    static_dir: Path = Path("frontend")
    greeting: str = DEFAULT_GREETING
    palette: List[str] = field(default_factory=lambda: list(PALETTE))

    def validate(self) -> None:
        if not 0 < self.port < 65536:
            raise ConfigError("TERMCHAT_PORT must be between 1 and 65535.")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"TERMCHAT_LOG_LEVEL must be one of: {', '.join(LOG_LEVELS)}.")
        if self.max_history <= 0:
            raise ConfigError("TERMCHAT_MAX_HISTORY must be positive.")
        if self.max_username_length <= 0:
            raise ConfigError("TERMCHAT_MAX_USERNAME_LENGTH must be positive.")
        if self.max_message_length <= 0:
            raise ConfigError("TERMCHAT_MAX_MESSAGE_LENGTH must be positive.")
        if self.send_timeout <= 0:
            raise ConfigError("TERMCHAT_SEND_TIMEOUT must be positive.")
        if not self.palette:
            raise ConfigError("palette must list at least one color.")

    @staticmethod
    def load() -> "Config":
        config_file = _get_env("CONFIG_FILE")
        file_values = _load_yaml(Path(config_file).expanduser() if config_file else None)
        defaults = Config()

        def pick(key: str, default: Any) -> Any:
            return file_values.get(key, default)

        palette_raw = pick("palette", None)
        if palette_raw is None:
            palette = list(defaults.palette)
        else:
            palette = []
            for name in palette_raw:
                color = parse_color(str(name))
                if color is None:
                    raise ConfigError(f"Unknown palette color {name!r}")
                palette.append(color)

        try:
            config = Config(
                bind=_get_env("BIND", str(pick("bind", defaults.bind))) or defaults.bind,
                port=_get_int("PORT", int(pick("port", defaults.port))),
                log_level=(_get_env("LOG_LEVEL", str(pick("log_level", defaults.log_level))) or "info").lower(),
                max_history=_get_int("MAX_HISTORY", int(pick("max_history", defaults.max_history))),
                max_username_length=_get_int(
                    "MAX_USERNAME_LENGTH", int(pick("max_username_length", defaults.max_username_length))
                ),
                max_message_length=_get_int(
                    "MAX_MESSAGE_LENGTH", int(pick("max_message_length", defaults.max_message_length))
                ),
                send_timeout=_get_float("SEND_TIMEOUT", float(pick("send_timeout", defaults.send_timeout))),
                static_dir=Path(_get_env("STATIC_DIR", str(pick("static_dir", defaults.static_dir))) or "frontend"),
                greeting=_get_env("GREETING", str(pick("greeting", defaults.greeting))) or defaults.greeting,
                palette=palette,
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid value in config file: {exc}") from exc
        config.validate()
        return config
