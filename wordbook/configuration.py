"""Layered YAML configuration for the word book.

Files are read in this order, later values winning:

1. ``<repo>/config/*.yml`` (shipped defaults)
2. ``<WORDBOOK_HOME>/config/*.yml`` (user overrides, ``/config KEY VALUE``)
3. environment overrides listed in ``ENV_OVERRIDES``

The merged tree is then checked against ``CONFIG_SCHEMA``. Problems never
raise; they are collected as ``Diagnostic`` entries on the bundle.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Dict, Iterator, List, Literal, Mapping, MutableMapping, Optional, Sequence, Tuple

import yaml

REPO_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_DIR = REPO_ROOT / "config"
DEFAULT_HOME = "~/.wordbook"
HOME_ENV_VAR = "WORDBOOK_HOME"

DiagnosticLevel = Literal["info", "warning", "error"]
ConfigurationStatus = Literal["ready", "missing", "invalid"]


@dataclass(frozen=True)
class Option:
    """One leaf setting: accepted type(s), default and optional constraints."""

    type: Any
    default: Any
    choices: Optional[Sequence[Any]] = None
    minimum: Optional[float] = None

    def problem(self, value: Any) -> Optional[str]:
        # bool is an int subclass; never accept it for numeric settings
        if isinstance(value, bool) and self.type is not bool:
            return f"must be of type {_type_name(self.type)}"
        if not isinstance(value, self.type):
            return f"must be of type {_type_name(self.type)}"
        if self.choices is not None and value not in self.choices:
            return "must be one of " + ", ".join(str(c) for c in self.choices)
        if self.minimum is not None and value < self.minimum:
            return f"must be >= {self.minimum}"
        return None


Section = Dict[str, Option]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
SYNC_PROVIDERS = ("gist", "file", "local")

CONFIG_SCHEMA: Dict[str, Section] = {
    "runtime": {
        "name": Option(str, "Wordbook"),
    },
    "logging": {
        "level": Option(str, "INFO", choices=LOG_LEVELS),
        "structured": Option(bool, True),
    },
    "ui": {
        "verbose": Option(bool, True),
    },
    "sync": {
        "enabled": Option(bool, False),
        "provider": Option(str, "gist", choices=SYNC_PROVIDERS),
        "api_url": Option(str, "https://api.github.com"),
        "gist_filename": Option(str, "translator-wordbook.json"),
        "private": Option(bool, True),
        "file_path": Option(str, "state/remote-wordbook.json"),
        "timeout": Option((int, float), 30, minimum=1),
        "credentials_path": Option(str, "state/sync_credentials.json"),
        "device_id_path": Option(str, "state/device_id"),
    },
    "storage": {
        "words_path": Option(str, "state/words.json"),
    },
    "export": {
        "directory": Option(str, "exports"),
        "product": Option(str, "translator"),
        "pretty_print": Option(bool, True),
    },
}

# env var -> (section, key); values are parsed as YAML scalars
ENV_OVERRIDES: Dict[str, Tuple[str, str]] = {
    "WORDBOOK_LOG_LEVEL": ("logging", "level"),
    "WORDBOOK_SYNC_PROVIDER": ("sync", "provider"),
}


@dataclass
class Diagnostic:
    """Represents a configuration validation or loading issue."""

    level: DiagnosticLevel
    message: str
    source: Optional[Path] = None


@dataclass
class ConfigurationBundle:
    """Everything loaded from repo defaults and the user's home overrides.

    One bundle per session; it is passed explicitly to whatever needs it.
    """

    home_dir: Path
    status: ConfigurationStatus
    merged: Dict[str, Any] = field(default_factory=dict)
    repo_defaults: Dict[str, Any] = field(default_factory=dict)
    home_overrides: Dict[str, Any] = field(default_factory=dict)
    files_loaded: List[Path] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    log_path: Optional[Path] = None

    def section(self, name: str) -> Dict[str, Any]:
        value = (self.merged or {}).get(name)
        return value if isinstance(value, dict) else {}

    def resolve_path(self, raw: str) -> Path:
        """Interpret a configured path relative to the home directory."""
        path = Path(raw).expanduser()
        return path if path.is_absolute() else self.home_dir / path

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.level == "error"]


def resolve_home_dir(
    env: Optional[Mapping[str, str]] = None,
    default: str = DEFAULT_HOME,
) -> Path:
    env_source = env if env is not None else os.environ
    return Path(env_source.get(HOME_ENV_VAR, default)).expanduser()


def load_runtime_configuration(
    home_dir: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ConfigurationBundle:
    resolved_home = home_dir or resolve_home_dir(env)
    bundle = ConfigurationBundle(home_dir=resolved_home, status="ready")

    bundle.repo_defaults = _load_layer(DEFAULT_CONFIG_DIR, "repo defaults", bundle)

    if not resolved_home.exists():
        bundle.status = "missing"
        _report(bundle, "error", f"Home directory '{resolved_home}' does not exist.")
    elif not resolved_home.is_dir():
        bundle.status = "invalid"
        _report(bundle, "error", f"Home path '{resolved_home}' is not a directory.")
    else:
        bundle.home_overrides = _load_layer(resolved_home / "config", "home overrides", bundle)

    merged = deepcopy(bundle.repo_defaults)
    _deep_merge_dicts(merged, bundle.home_overrides)
    _apply_env_overrides(merged, env if env is not None else os.environ, bundle)
    bundle.merged = _validate(merged, bundle)

    if bundle.status == "ready" and bundle.errors:
        bundle.status = "invalid"
    return bundle


def _report(
    bundle: ConfigurationBundle,
    level: DiagnosticLevel,
    message: str,
    source: Optional[Path] = None,
) -> None:
    bundle.diagnostics.append(Diagnostic(level=level, message=message, source=source))


def _yaml_files(directory: Path) -> Iterator[Path]:
    yield from sorted(directory.glob("*.yml"))
    yield from sorted(directory.glob("*.yaml"))


def _load_layer(directory: Path, label: str, bundle: ConfigurationBundle) -> Dict[str, Any]:
    """Merge every YAML file in ``directory`` in name order."""

    layer: Dict[str, Any] = {}
    if not directory.is_dir():
        level: DiagnosticLevel = "error" if directory.exists() else "info"
        _report(bundle, level, f"No configuration directory at '{directory}' ({label}).", directory)
        return layer

    for path in _yaml_files(directory):
        try:
            content = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            _report(bundle, "error", f"Failed to parse '{path}': {exc}", path)
            continue

        if content is not None and not isinstance(content, MutableMapping):
            _report(bundle, "warning", f"Ignoring '{path}' because it does not contain a mapping.", path)
            continue

        _deep_merge_dicts(layer, dict(content or {}))
        bundle.files_loaded.append(path)
    return layer


def _apply_env_overrides(
    merged: Dict[str, Any],
    env: Mapping[str, str],
    bundle: ConfigurationBundle,
) -> None:
    for var, (section, key) in ENV_OVERRIDES.items():
        raw = env.get(var)
        if raw is None or not raw.strip():
            continue
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError:
            value = raw
        if section == "logging" and key == "level" and isinstance(value, str):
            value = value.upper()
        target = merged.setdefault(section, {})
        if not isinstance(target, dict):
            continue
        target[key] = value
        _report(bundle, "info", f"{section}.{key} set from ${var}.")


def _deep_merge_dicts(dest: MutableMapping[str, Any], source: Mapping[str, Any]) -> None:
    for key, value in source.items():
        current = dest.get(key)
        if isinstance(current, MutableMapping) and isinstance(value, Mapping):
            _deep_merge_dicts(current, value)
        else:
            dest[key] = deepcopy(value)


def _type_name(expected: Any) -> str:
    if isinstance(expected, tuple):
        return ", ".join(t.__name__ for t in expected)
    return expected.__name__


def _validate(raw: Dict[str, Any], bundle: ConfigurationBundle) -> Dict[str, Any]:
    """Return a tree with every schema key present and invalid values reset."""

    result: Dict[str, Any] = {}
    for name in raw:
        if name not in CONFIG_SCHEMA:
            _report(bundle, "warning", f"Unknown configuration key 'config.{name}'.")
            result[name] = raw[name]

    for name, options in CONFIG_SCHEMA.items():
        section = raw.get(name)
        if section is None:
            section = {}
        elif not isinstance(section, dict):
            _report(bundle, "error", f"'config.{name}' must be a mapping.")
            section = {}

        checked: Dict[str, Any] = {}
        for key, value in section.items():
            if key not in options:
                _report(bundle, "warning", f"Unknown configuration key 'config.{name}.{key}'.")
                checked[key] = value

        for key, option in options.items():
            value = section.get(key)
            if value is None:
                checked[key] = deepcopy(option.default)
                continue
            problem = option.problem(value)
            if problem:
                _report(bundle, "error", f"'config.{name}.{key}' {problem}.")
                value = deepcopy(option.default)
            checked[key] = value
        result[name] = checked
    return result


__all__ = [
    "CONFIG_SCHEMA",
    "ConfigurationBundle",
    "ConfigurationStatus",
    "DEFAULT_CONFIG_DIR",
    "Diagnostic",
    "ENV_OVERRIDES",
    "Option",
    "load_runtime_configuration",
    "resolve_home_dir",
]
