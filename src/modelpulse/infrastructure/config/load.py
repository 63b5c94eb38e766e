from __future__ import annotations

from copy import deepcopy
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv
from pydantic import AliasChoices, AliasPath

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides


@lru_cache(maxsize=1)
def _section_paths() -> dict[str, tuple[str, str]]:
    """Flat field name -> (section, key), read off the AppConfig aliases.

    ``probe_timeout_ms`` -> ``("probe", "timeout_ms")`` and so on.
    """
    paths: dict[str, tuple[str, str]] = {}
    for name, field in AppConfig.model_fields.items():
        alias = field.validation_alias
        if not isinstance(alias, AliasChoices):
            continue
        for choice in alias.choices:
            if isinstance(choice, AliasPath) and len(choice.path) == 2:
                section, key = choice.path
                paths[name] = (str(section), str(key))
    return paths


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """
    Bring one layer (defaults/YAML/ENV/CLI) into the sectioned YAML shape.

    Flat keys (``log_level``) and sectioned keys (``logging.level``) may be
    mixed; flat keys win within the same layer.
    """
    paths = _section_paths()
    sections = {section for section, _ in paths.values()}
    out: dict[str, Any] = {}

    for key, value in layer.items():
        if key in sections and isinstance(value, Mapping):
            out.setdefault(key, {}).update(value)
        elif key not in paths:
            out[key] = value

    for key, (section, section_key) in paths.items():
        if key in layer:
            out.setdefault(section, {})[section_key] = layer[key]

    return out


def _merge_into(base: dict[str, Any], layer: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *layer* over *base* in place; nested mappings merge, scalars replace."""
    for key, value in layer.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            base[key] = value
    return base


def _read_yaml(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(config_path)
    parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return parsed


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """
    Load configuration with strict precedence:
    defaults < YAML file < env vars (``MODELPULSE_*``, incl. .env) < cli overrides

    Reading config never creates files or directories.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        # Variables already in the environment keep priority over the .env file.
        load_dotenv(dotenv_path, override=False)

    layers: list[Mapping[str, Any]] = [deepcopy(DEFAULT_CONFIG)]
    if config_path is not None:
        layers.append(_read_yaml(config_path))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        _merge_into(merged, _sectioned(layer))

    return AppConfig.model_validate(merged)
