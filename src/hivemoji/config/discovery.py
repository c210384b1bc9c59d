"""Locate the ``hivemoji`` config file.

A project is configured by either ``hivemoji.toml`` or
``.hivemoji/config.toml`` (beside the persistent cache database). The nearest
directory holding one of them, walking up from the start directory, is the
project root. ``HIVEMOJI_CONFIG`` names a file or a project directory and
skips the walk.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "hivemoji.toml"
CONFIG_ENV_VAR = "HIVEMOJI_CONFIG"
PROJECT_DIRNAME = ".hivemoji"
PROJECT_CONFIG = "config.toml"


def _candidates(directory: Path) -> tuple[Path, Path]:
    return directory / CONFIG_FILENAME, directory / PROJECT_DIRNAME / PROJECT_CONFIG


def _in(directory: Path) -> Path | None:
    for candidate in _candidates(directory):
        if candidate.is_file():
            return candidate
    return None


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file governing *start* (default: cwd), or None."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_dir():
            return _in(p)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        found = _in(directory)
        if found is not None:
            return found
    return None


def project_root(config_path: Path) -> Path:
    """Directory a config file governs; ``.hivemoji/config.toml`` counts for its parent."""
    parent = config_path.parent
    if parent.name == PROJECT_DIRNAME and config_path.name == PROJECT_CONFIG:
        return parent.parent
    return parent
