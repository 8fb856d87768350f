from __future__ import annotations
from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import yaml

from .notifications import DEFAULT_THRESHOLD, INDICATOR_ICON, SOURCE_NAME

CONFIG_PATH_DEFAULT = "~/.config/fullbattery/config.yaml"
READER_MODES = ("auto", "native", "device")

ENV_CONFIG = "FULLBATTERY_CONFIG"
ENV_THRESHOLD = "FULLBATTERY_THRESHOLD"
ENV_LOG_LEVEL = "FULLBATTERY_LOG_LEVEL"


class ConfigError(ValueError):
    """Raised when the configuration holds a value the notifier cannot use."""


@dataclass
class NotifierConfig:
    threshold: int = DEFAULT_THRESHOLD
    source_name: str = SOURCE_NAME
    icon: str = INDICATOR_ICON
    expire_timeout_ms: int = -1

@dataclass
class LoggingConfig:
    level: str = "INFO"

@dataclass
class AppConfig:
    reader_mode: str = "auto"
    check_on_start: bool = True
    notifier: NotifierConfig = field(default_factory=NotifierConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def resolve_config_path(path: Optional[str], environ: Mapping[str, str] = os.environ) -> Path:
    return Path(path or environ.get(ENV_CONFIG) or CONFIG_PATH_DEFAULT).expanduser()


def _parse_threshold(value: Any) -> int:
    try:
        threshold = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"threshold must be an integer, got {value!r}") from exc
    if not 0 <= threshold <= 100:
        raise ConfigError(f"threshold must be between 0 and 100, got {threshold}")
    return threshold


def _parse_expire_timeout(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"expire_timeout_ms must be an integer, got {value!r}") from exc


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"{key} must be a mapping, got {section!r}")
    return section


def load_config(path: Optional[str] = None, environ: Mapping[str, str] = os.environ) -> AppConfig:
    p = resolve_config_path(path, environ)
    data: Dict[str, Any] = {}
    if p.exists():
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{p}: top level must be a mapping")

    notifier = _section(data, "notifier")
    log = _section(data, "logging")

    reader_mode = str(data.get("reader_mode", "auto")).lower()
    if reader_mode not in READER_MODES:
        raise ConfigError(f"reader_mode must be one of {', '.join(READER_MODES)}, got {reader_mode!r}")

    threshold = notifier.get("threshold", DEFAULT_THRESHOLD)
    if environ.get(ENV_THRESHOLD):
        threshold = environ[ENV_THRESHOLD]

    return AppConfig(
        reader_mode=reader_mode,
        check_on_start=bool(data.get("check_on_start", True)),
        notifier=NotifierConfig(
            threshold=_parse_threshold(threshold),
            source_name=str(notifier.get("source_name", SOURCE_NAME)),
            icon=str(notifier.get("icon", INDICATOR_ICON)),
            expire_timeout_ms=_parse_expire_timeout(notifier.get("expire_timeout_ms", -1)),
        ),
        logging=LoggingConfig(
            level=str(environ.get(ENV_LOG_LEVEL) or log.get("level", "INFO")).upper(),
        ),
    )
