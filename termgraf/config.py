"""
Config loading.

The document is JSON:

    {"rows": [{"widgets": [{"title": "cpu", "query": "@cpu.flux", ...}]}]}

A query starting with QUERY_MARKER names a template file relative to the
config file's directory.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from termgraf.errors import ConfigError
from termgraf.providers import Config, Row, Widget
from termgraf.templates import compile_template

QUERY_MARKER = "@"


def _str_field(data: dict, key: str, where: str) -> str:
    value = data.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigError(f"{where}: '{key}' must be a string")
    return value


def _int_field(data: dict, key: str, where: str) -> int:
    value = data.get(key, 0)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{where}: '{key}' must be an integer")
    return value


def _interval_field(data: dict, where: str) -> float | None:
    value = data.get("interval")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{where}: 'interval' must be a positive number")
    return float(value)


def _list_field(data: dict, key: str, where: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{where}: '{key}' must be a list")
    return value


def _widget_from_dict(data: Any, where: str) -> Widget:
    """Convert a widget dict to a Widget, normalizing height."""
    if not isinstance(data, dict):
        raise ConfigError(f"{where}: widget must be an object")
    return Widget(
        title=_str_field(data, "title", where),
        query=_str_field(data, "query", where),
        column=_str_field(data, "column", where),
        color=_str_field(data, "color", where),
        height=max(_int_field(data, "height", where), 1),
        span=_int_field(data, "span", where),
        limit=_int_field(data, "limit", where),
        interval=_interval_field(data, where),
    )


def _row_from_dict(data: Any, where: str) -> Row:
    if not isinstance(data, dict):
        raise ConfigError(f"{where}: row must be an object")
    widgets = _list_field(data, "widgets", where)
    return Row(
        widgets=tuple(
            _widget_from_dict(w, f"{where}.widgets[{i}]")
            for i, w in enumerate(widgets)
        )
    )


def parse_config(data: Any) -> Config:
    """Build a Config from a decoded document. Templates are not resolved."""
    if not isinstance(data, dict):
        raise ConfigError("config must be a JSON object")
    rows = _list_field(data, "rows", "config")
    return Config(
        rows=tuple(_row_from_dict(r, f"rows[{i}]") for i, r in enumerate(rows))
    )


def attach_templates(config: Config, base_dir: Path) -> None:
    """Compile the template of every widget whose query is a file reference."""
    for widget in config.widgets():
        if not widget.query.startswith(QUERY_MARKER):
            continue
        path = base_dir / widget.query[len(QUERY_MARKER):]
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"cannot read query file {path}: {e}") from e
        widget.template = compile_template(text, name=str(path))


def load_config(config_file: Path | str) -> Config:
    """Load config from a JSON file and resolve its query templates."""
    path = Path(config_file)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path}: invalid JSON: {e}") from e

    config = parse_config(data)
    attach_templates(config, path.parent)
    return config
