# app/config.py
from __future__ import annotations
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict
import json
import logging

log = logging.getLogger(__name__)

SETTINGS_FILE = Path("settings.json")


@dataclass(frozen=True)
class Settings:
    refresh_interval_ms: int = 100
    stall_timeout_ms: int = 3000
    engine_retries: int = 1
    async_engine: bool = True
    texts_path: str = "assets/texts.json"
    last_mode_path: str = "data/last_mode.json"
    log_file: str = "app.log"
    log_level: str = "INFO"


_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _coerce(name: str, value: Any, default: Any) -> Any:
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ValueError(f"{name} must be true or false")
        return value
    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{name} must be an integer")
        if value < 0:
            raise ValueError(f"{name} must not be negative")
        return value
    if not isinstance(value, str) or not value:
        raise ValueError(f"{name} must be a non-empty string")
    return value


def settings_from_dict(d: Dict[str, Any]) -> Settings:
    """Build Settings from a mapping; unknown keys are ignored, bad values keep the default."""
    base = Settings()
    changes: Dict[str, Any] = {}
    for f in fields(Settings):
        if f.name not in d:
            continue
        default = getattr(base, f.name)
        try:
            changes[f.name] = _coerce(f.name, d[f.name], default)
        except ValueError as e:
            log.warning("Ignoring setting: %s", e)
    settings = replace(base, **changes)

    # at most one retry per engine call
    if settings.engine_retries > 1:
        settings = replace(settings, engine_retries=1)
    if settings.refresh_interval_ms == 0:
        settings = replace(settings, refresh_interval_ms=base.refresh_interval_ms)
    level = settings.log_level.upper()
    if level not in _LOG_LEVELS:
        log.warning("Unknown log level %r, using %s", settings.log_level, base.log_level)
        level = base.log_level
    return replace(settings, log_level=level)


def load_settings(path: Path = SETTINGS_FILE) -> Settings:
    """Load settings.json (if present)."""
    if not path.exists():
        return Settings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("Failed to read %s: %s", path, e)
        return Settings()
    if not isinstance(data, dict):
        log.warning("%s must hold a JSON object, using defaults", path)
        return Settings()
    return settings_from_dict(data)
