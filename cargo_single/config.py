"""Configuration loading for cargo-single (.cargo-single.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .manifest import STRATEGIES

CONFIG_NAME = ".cargo-single.yml"
LINK_MODES = ("hardlink", "copy", "auto")
ENV_CARGO_KEYS = ("CARGO_SINGLE_CARGO", "CARGO")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ManifestConfig:
    """How the shadow manifest's dependency block is rewritten."""

    strategy: str = "truncate"
    require_header: bool = True


@dataclass
class SingleConfig:
    """Represents the settings defined in .cargo-single.yml."""

    root: Path
    cargo: str = "cargo"
    quiet: bool = True
    link_mode: str = "hardlink"
    manifest: ManifestConfig = field(default_factory=ManifestConfig)


def load_config(
    config_path: Path, *, environ: Optional[Mapping[str, str]] = None
) -> SingleConfig:
    """Load configuration for sources in ``config_path`` (a directory or file)."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent
    env = os.environ if environ is None else environ

    data: Dict[str, Any] = {}
    if config_file.is_file():
        data = _read_config(config_file)

    manifest_data = _as_dict(data.get("manifest"), "manifest")
    manifest = ManifestConfig(
        strategy=_as_choice(
            manifest_data.get("strategy"), STRATEGIES, "manifest.strategy", "truncate"
        ),
        require_header=_as_bool(
            manifest_data.get("require_header"), "manifest.require_header", True
        ),
    )

    cargo = _as_str(data.get("cargo"), "cargo") or "cargo"
    for key in ENV_CARGO_KEYS:
        value = env.get(key)
        if value:
            cargo = value
            break

    return SingleConfig(
        root=root,
        cargo=cargo,
        quiet=_as_bool(data.get("quiet"), "quiet", True),
        link_mode=_as_choice(data.get("link_mode"), LINK_MODES, "link_mode", "hardlink"),
        manifest=manifest,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = Path(config_path).expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_NAME).resolve()
    if config_path.name != CONFIG_NAME:
        return (config_path.parent / CONFIG_NAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigError(f"{path.name} is not valid UTF-8: {exc.reason}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_dict(value: Any, key: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{key} must be a mapping")
    return value


def _as_str(value: Any, key: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{key} must be a string")
    return value.strip() or None


def _as_bool(value: Any, key: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    raise ConfigError(f"{key} must be a boolean")


def _as_choice(value: Any, choices: tuple[str, ...], key: str, default: str) -> str:
    text = _as_str(value, key)
    if text is None:
        return default
    if text not in choices:
        raise ConfigError(f"{key} must be one of: {', '.join(choices)}")
    return text


__all__ = [
    "CONFIG_NAME",
    "ConfigError",
    "LINK_MODES",
    "ManifestConfig",
    "SingleConfig",
    "load_config",
]
