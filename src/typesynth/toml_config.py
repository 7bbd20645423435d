"""TOML-based configuration for typesynth.

Usage:
    from typesynth.toml_config import load_toml_config, find_config_file

    # Load from a specific file
    config = load_toml_config(Path("typesynth.toml"))

    # Auto-discover config file in directory hierarchy
    config_path = find_config_file(Path.cwd())
    if config_path:
        config = load_toml_config(config_path)

Example typesynth.toml:
    [search]
    max_size = 50
    timeout_seconds = 60

    [pools]
    max_pool_size = 20
    max_literal_length = 20

    [executor]
    kind = "subprocess"
    python = "python3"
    example_timeout_seconds = 10

    [limits]
    max_array_arity = 3
    arithmetic_constants = 5

    [logging]
    level = "INFO"
    format = "json"
"""

from __future__ import annotations

import dataclasses
import tomllib
from pathlib import Path
from typing import Any

from typesynth.config import SynthesisConfig
from typesynth.errors import ConfigError
from typesynth.synthesis.expansion import ExpansionLimits

# Config file names to search for (in order of preference)
CONFIG_FILE_NAMES = ["typesynth.toml", ".typesynthrc.toml", "pyproject.toml"]

# (section, key) -> SynthesisConfig attribute
_FIELDS: dict[tuple[str, str], str] = {
    ("search", "max_size"): "max_size",
    ("search", "timeout_seconds"): "timeout_seconds",
    ("pools", "max_pool_size"): "max_pool_size",
    ("pools", "max_literal_length"): "max_literal_length",
    ("executor", "kind"): "executor",
    ("executor", "python"): "python",
    ("executor", "example_timeout_seconds"): "example_timeout_seconds",
    ("logging", "level"): "log_level",
    ("logging", "format"): "log_format",
}


def find_config_file(
    start_dir: Path,
    config_names: list[str] | None = None,
) -> Path | None:
    """Find a config file by searching up the directory hierarchy.

    Args:
        start_dir: Directory to start searching from
        config_names: List of config file names to search for (default: CONFIG_FILE_NAMES)

    Returns:
        Path to the config file, or None if not found
    """
    config_names = config_names or CONFIG_FILE_NAMES
    current = start_dir.resolve()

    while True:
        for name in config_names:
            config_path = current / name
            if config_path.exists():
                # For pyproject.toml, check if it has a [tool.typesynth] section
                if name == "pyproject.toml":
                    if _has_typesynth_section(config_path):
                        return config_path
                else:
                    return config_path

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def _has_typesynth_section(pyproject_path: Path) -> bool:
    """Check if pyproject.toml has a [tool.typesynth] section."""
    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return "tool" in data and "typesynth" in data["tool"]


def load_toml_config(path: Path) -> SynthesisConfig:
    """Load a SynthesisConfig from a TOML file.

    Supports typesynth.toml (full file) and pyproject.toml (under [tool.typesynth]).

    Raises:
        FileNotFoundError: The file does not exist
        ConfigError: The file is not valid TOML or holds invalid settings
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML: {e}", file=path) from e

    if path.name == "pyproject.toml":
        if "tool" not in data or "typesynth" not in data["tool"]:
            raise ConfigError(f"No [tool.typesynth] section in {path}", file=path)
        data = data["tool"]["typesynth"]

    config = _build_config_from_dict(data, path)
    errors = config.validate()
    if errors:
        raise ConfigError("; ".join(errors), file=path)
    return config


def _build_config_from_dict(data: dict[str, Any], path: Path | None = None) -> SynthesisConfig:
    """Build a SynthesisConfig from a dictionary of settings.

    Unknown sections and keys are rejected so typos do not pass silently.
    """
    config = SynthesisConfig()
    limit_names = {f.name for f in dataclasses.fields(ExpansionLimits)}
    sections = {section for section, _ in _FIELDS} | {"limits"}

    for section, values in data.items():
        if section not in sections:
            raise ConfigError(f"Unknown config section [{section}]", file=path)
        if not isinstance(values, dict):
            raise ConfigError(f"[{section}] must be a table", file=path)

        if section == "limits":
            unknown = set(values) - limit_names
            if unknown:
                raise ConfigError(f"Unknown limits: {', '.join(sorted(unknown))}", file=path)
            config.limits = dataclasses.replace(config.limits, **values)
            continue

        for key, value in values.items():
            attr = _FIELDS.get((section, key))
            if attr is None:
                raise ConfigError(f"Unknown setting {section}.{key}", file=path)
            setattr(config, attr, value)

    return config


def merge_configs(base: SynthesisConfig, override: SynthesisConfig) -> SynthesisConfig:
    """Merge two configs, with override taking precedence.

    A setting of `override` wins wherever it differs from the default.
    """
    defaults = SynthesisConfig()
    merged = dataclasses.replace(base)
    for f in dataclasses.fields(SynthesisConfig):
        value = getattr(override, f.name)
        if value != getattr(defaults, f.name):
            setattr(merged, f.name, value)
    return merged


def config_to_toml(config: SynthesisConfig) -> str:
    """Convert a SynthesisConfig to TOML format."""
    sections: dict[str, list[str]] = {}
    for (section, key), attr in _FIELDS.items():
        sections.setdefault(section, []).append(f"{key} = {_toml_value(getattr(config, attr))}")
    sections["limits"] = [
        f"{f.name} = {_toml_value(getattr(config.limits, f.name))}"
        for f in dataclasses.fields(ExpansionLimits)
    ]

    lines = []
    for section, entries in sections.items():
        lines.append(f"[{section}]")
        lines.extend(entries)
        lines.append("")
    return "\n".join(lines)


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return str(value)
