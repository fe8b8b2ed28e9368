import json
import tomllib
from pathlib import Path
from typing import Any, Mapping

import yaml

from .types import ConfigError, IsolationConfig, UnsupportedConfigFormatError

_FLOAT_KEYS = ("poll_interval", "grace_period")


def load_config(path: str | Path) -> IsolationConfig:
    pure_path = Path(path).expanduser().resolve()

    if not pure_path.exists():
        raise ConfigError(f"Config file not found: {pure_path}")

    if not pure_path.is_file():
        raise ConfigError(f"Config path is not a file: {pure_path}")

    fmt = _detect_format(pure_path)
    raw_file = _parse_file(pure_path, fmt)
    return _build_isolation_config(raw_file)


def _detect_format(path: Path) -> str:
    fmt = path.suffix
    match fmt:
        case ".yaml" | ".yml":
            return "yaml"
        case ".toml":
            return "toml"
        case ".json":
            return "json"
        case _:
            raise UnsupportedConfigFormatError(
                f"Non supported file extension: {fmt}\n Expected format: .yml/.yaml, .toml, .json"
            )


def _parse_file(path: Path, fmt: str) -> Mapping[str, Any]:
    text = path.read_text(encoding="utf-8")
    match fmt:
        case "yaml":
            try:
                raw_file = yaml.safe_load(text)
            except yaml.YAMLError as exc:
                raise ConfigError(f"{path}: invalid YAML") from exc
        case "toml":
            try:
                raw_file = tomllib.loads(text)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"{path}: invalid TOML") from exc
        case "json":
            try:
                raw_file = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ConfigError(f"{path}: invalid JSON") from exc
        case _:
            raise AssertionError("Unreachable")

    if not isinstance(raw_file, Mapping):
        raise ConfigError(
            f"{path}: {fmt.upper()} parsed succesfully but top-level value is not an object: {type(raw_file)}"
        )

    return raw_file


def _build_isolation_config(raw: Mapping[str, Any]) -> IsolationConfig:
    if "isolation" not in raw or raw["isolation"] is None:
        return IsolationConfig()

    fields = raw["isolation"]
    if not isinstance(fields, Mapping):
        raise ConfigError(f"'isolation' must be a mapping, got {type(fields)}")

    keys = {"timeout", "poll_interval", "grace_period", "fallback_exit_code"}
    for field in fields.keys():
        if field not in keys:
            raise ConfigError(f"isolation: Can't process: {field}")

    values: dict[str, Any] = {}

    if "timeout" in fields:
        # null disables the deadline altogether
        if fields["timeout"] is None:
            values["timeout"] = None
        else:
            values["timeout"] = _non_negative_number("timeout", fields["timeout"])

    for key in _FLOAT_KEYS:
        if key in fields:
            values[key] = _non_negative_number(key, fields[key])

    if "fallback_exit_code" in fields:
        code = fields["fallback_exit_code"]
        if isinstance(code, bool) or not isinstance(code, int):
            raise ConfigError("isolation: fallback_exit_code should be an integer")
        if not 1 <= code <= 255:
            raise ConfigError(
                f"isolation: fallback_exit_code must be between 1 and 255, got {code}"
            )
        values["fallback_exit_code"] = code

    return IsolationConfig(**values)


def _non_negative_number(key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"isolation: {key} should be a number")

    if value < 0:
        raise ConfigError(f"isolation: {key} can't be negative, got {value}")

    return float(value)
