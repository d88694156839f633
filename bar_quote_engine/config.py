from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic.alias_generators import to_snake

from .models import Settings


def _load_yaml(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _snake_keys(data: Any) -> Any:
    if isinstance(data, dict):
        return {to_snake(str(k)): _snake_keys(v) for k, v in data.items()}
    return data


def _deep_update(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _deep_update(out[key], value)
        else:
            out[key] = value
    return out


def load_settings(path: Optional[Path] = None) -> Settings:
    """Settings from a YAML file, merged over the built-in defaults.

    Keys may be camelCase (as saved) or snake_case. A missing file yields the
    defaults.
    """
    if path is None or not Path(path).exists():
        return Settings()
    defaults = Settings().model_dump(mode="json")
    merged = _deep_update(defaults, _snake_keys(_load_yaml(Path(path))))
    return Settings.model_validate(merged)


def save_settings(settings: Settings, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(settings.model_dump(by_alias=True, mode="json"), f, sort_keys=False)
    return path
