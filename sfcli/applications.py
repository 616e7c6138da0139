"""Discovery of Platform.sh application definitions in a project tree."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Iterable

import yaml

logger = logging.getLogger(__name__)

SKIPPED_DIRECTORIES = frozenset(
    {
        ".git",
        "vendor",
        "node_modules",
        "bundles",
        "var",
        "cache",
        "config",
        "tests",
        "templates",
        "assets",
        "images",
        "fonts",
        "js",
        "src",
    }
)
MAX_DEPTH = 5
APP_CONFIG_NAMES = ("applications.yaml", ".platform.app.yaml")
MULTI_APP_SUFFIX = os.path.join(".platform", "applications.yaml")


@dataclass
class LocalApplication:
    """An application defined in a ``.platform.app.yaml`` or ``applications.yaml`` file."""

    name: str = ""
    type: str = ""
    workers: dict[str, dict[str, Any]] = field(default_factory=dict)
    definition_file: str = ""
    local_root_dir: str = ""


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _app_from_mapping(data: Any, definition_file: str, local_root_dir: str) -> LocalApplication:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("an application definition must be a mapping")
    workers = data.get("workers") or {}
    if not isinstance(workers, dict):
        raise ValueError("the workers entry must be a mapping")
    return LocalApplication(
        name=_as_str(data.get("name")),
        type=_as_str(data.get("type")),
        workers={str(k): dict(v) if isinstance(v, dict) else {} for k, v in workers.items()},
        definition_file=definition_file,
        local_root_dir=local_root_dir,
    )


def _parse_definition(path: str, content: bytes, root: str) -> list[LocalApplication]:
    data = yaml.safe_load(content)
    if path.endswith(MULTI_APP_SUFFIX):
        if data is None:
            return []
        if not isinstance(data, list):
            raise ValueError("applications.yaml must hold a list of applications")
        apps = []
        for item in data:
            source = item.get("source") if isinstance(item, dict) else None
            source_root = source.get("root") if isinstance(source, dict) else None
            local_root = os.path.normpath(os.path.join(root, _as_str(source_root)))
            apps.append(_app_from_mapping(item, path, local_root))
        return apps
    return [_app_from_mapping(data, path, os.path.dirname(path))]


def find_local_applications(root_directory: str) -> list[LocalApplication]:
    """Return the applications defined under ``root_directory``, sorted by name."""
    try:
        root = os.path.realpath(root_directory, strict=True)
    except OSError as exc:
        logger.error("Could not eval project root directory: %s", exc)
        return []

    apps: list[LocalApplication] = []
    for path in find_app_config_files(root):
        try:
            with open(path, "rb") as handle:
                content = handle.read()
        except OSError as exc:
            logger.warning("Could not read %s file: %s", path, exc)
            continue
        try:
            apps.extend(_parse_definition(path, content, root))
        except (yaml.YAMLError, ValueError, AttributeError) as exc:
            logger.error("Could not decode %s YAML file: %s", path, exc)
    apps.sort(key=lambda app: app.name)
    return apps


def find_app_config_files(directory: str) -> list[str]:
    """Return the application definition files found under ``directory``."""
    found: list[str] = []
    for dirpath, dirnames, filenames in os.walk(directory):
        kept = []
        for name in sorted(dirnames):
            if name in SKIPPED_DIRECTORIES:
                continue
            relative = os.path.relpath(os.path.join(dirpath, name), directory)
            if len(relative.split(os.sep)) > MAX_DEPTH:
                continue
            kept.append(name)
        dirnames[:] = kept
        found.extend(
            os.path.join(dirpath, name) for name in sorted(filenames) if name in APP_CONFIG_NAMES
        )
    return found


def guess_selected_app_by_directory(
    directory: str, apps: Iterable[LocalApplication]
) -> LocalApplication | None:
    """Return the application whose root contains ``directory``."""
    apps = list(apps)
    if len(apps) == 1:
        return apps[0]
    directory = os.path.realpath(directory)
    for app in apps:
        try:
            relative = os.path.relpath(directory, app.local_root_dir)
        except ValueError:
            continue
        if relative.startswith(".."):
            continue
        return app
    return None


def guess_selected_app_by_wd(apps: Iterable[LocalApplication]) -> LocalApplication | None:
    """Return the application whose root contains the working directory."""
    try:
        cwd = os.getcwd()
    except OSError:
        return None
    if not cwd:
        return None
    return guess_selected_app_by_directory(cwd, apps)