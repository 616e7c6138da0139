"""Local web server configuration of a PHP project."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Mapping

import yaml

LOCAL_CONFIG_FILENAME = ".symfony.local.yaml"
DEFAULT_PORT = 8000
DOCUMENT_ROOTS = ("public", "web", "docroot")
FRONT_CONTROLLERS = ("index_dev.php", "index.php", "app_dev.php", "app.php")


class ConfigError(ValueError):
    """Raised when the local project configuration file is invalid."""


@dataclass
class Config:
    """Settings of the local web server of a project."""

    home_dir: str = ""
    project_dir: str = ""
    document_root: str = ""
    passthru: str = ""
    prefered_port: int = 0
    pkcs12: str = ""
    app_version: str = ""
    allow_http: bool = False
    no_tls: bool = False
    daemon: bool = False


@dataclass
class Worker:
    """A command run alongside the web server."""

    cmd: list[str] = field(default_factory=list)
    watch: list[str] = field(default_factory=list)


@dataclass
class FileConfig:
    """The contents of ``.symfony.local.yaml``."""

    proxy_domains: list[str] = field(default_factory=list)
    http: Config | None = None
    workers: dict[str, Worker] = field(default_factory=dict)


_DEFAULT_WORKERS = {
    "yarn_encore_watch": lambda: Worker(cmd=["yarn", "encore", "dev", "--watch"]),
    "messenger_consume_async": lambda: Worker(
        cmd=["symfony", "console", "messenger:consume", "async"],
        watch=["config", "src", "templates", "vendor"],
    ),
}


def _mapping(value: Any, what: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{what} must be a mapping")
    return value


def _strings(value: Any, what: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{what} must be a list")
    return [str(item) for item in value]


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _http_config(data: dict) -> Config:
    try:
        port = int(data.get("prefered_port") or 0)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid prefered_port: {exc}") from exc
    return Config(
        document_root=_text(data.get("document_root")),
        passthru=_text(data.get("passthru")),
        prefered_port=port,
        pkcs12=_text(data.get("p12")),
        allow_http=bool(data.get("allow_http")),
        no_tls=bool(data.get("no_tls")),
        daemon=bool(data.get("daemon")),
    )


def _parse_workers(raw: Any) -> dict[str, Worker]:
    entries = _mapping(raw, "workers")
    workers: dict[str, Worker | None] = {}
    for name, value in entries.items():
        name = str(name)
        if value is None:
            default = _DEFAULT_WORKERS.get(name)
            workers[name] = default() if default else None
            continue
        data = _mapping(value, f'worker "{name}"')
        workers[name] = Worker(
            cmd=_strings(data.get("cmd"), f'"{name}" cmd'),
            watch=_strings(data.get("watch"), f'"{name}" watch'),
        )
    for name, worker in workers.items():
        if worker is None:
            raise ConfigError(
                f'The "{name}" worker entry in "{LOCAL_CONFIG_FILENAME}" cannot be empty.'
            )
    return workers  # type: ignore[return-value]


def load_file_config(config_file: str) -> FileConfig | None:
    """Read a local configuration file; return ``None`` when it does not exist."""
    if not os.path.exists(config_file):
        return None
    with open(config_file, "rb") as handle:
        contents = handle.read()
    try:
        data = _mapping(yaml.safe_load(contents), "configuration")
    except yaml.YAMLError as exc:
        raise ConfigError(f"unable to parse {config_file}: {exc}") from exc
    proxy = _mapping(data.get("proxy"), "proxy")
    http = data.get("http")
    return FileConfig(
        proxy_domains=_strings(proxy.get("domains"), "proxy domains"),
        http=None if http is None else _http_config(_mapping(http, "http")),
        workers=_parse_workers(data.get("workers")),
    )


def new_config(
    project_dir: str, options: Mapping[str, Any], app_version: str
) -> tuple[Config, FileConfig | None]:
    """Build the server configuration from the project file and command options.

    Only the keys present in ``options`` override the file settings.
    """
    config = Config()
    file_config = load_file_config(os.path.join(project_dir, LOCAL_CONFIG_FILENAME))
    if file_config is not None:
        if file_config.http is None:
            file_config.http = Config()
        else:
            config = file_config.http
    config.app_version = app_version
    config.project_dir = project_dir
    if "document-root" in options:
        config.document_root = str(options["document-root"])
    if "passthru" in options:
        config.passthru = str(options["passthru"])
    if "port" in options:
        config.prefered_port = int(options["port"])
    if config.prefered_port == 0:
        config.prefered_port = DEFAULT_PORT
    if "allow-http" in options:
        config.allow_http = bool(options["allow-http"])
    if "p12" in options:
        config.pkcs12 = str(options["p12"])
    if "no-tls" in options:
        config.no_tls = bool(options["no-tls"])
    if "daemon" in options:
        config.daemon = bool(options["daemon"])
    return config, file_config


def real_document_root(directory: str, document_root: str) -> str:
    """Return the absolute document root, ending with a path separator."""
    if not document_root:
        document_root = guess_document_root(directory)
    elif not os.path.isabs(document_root):
        document_root = os.path.normpath(os.path.join(directory, document_root))
    return document_root.rstrip(os.sep) + os.sep


def real_passthru(document_root: str, passthru: str) -> str:
    """Return the front controller path (starting with ``/``); it must exist."""
    if not passthru:
        passthru = guess_passthru(document_root)
    passthru = "/" + passthru.strip("/")
    controller = os.path.join(document_root, passthru.lstrip("/"))
    if not os.path.exists(controller):
        raise FileNotFoundError(
            f'Passthru script "{passthru}" does not exist under {document_root}'
        )
    return passthru


def guess_document_root(path: str) -> str:
    """Guess the web root of a project directory."""
    try:
        with open(os.path.join(path, "composer.json"), "rb") as handle:
            composer = json.loads(handle.read())
    except (OSError, ValueError):
        composer = None
    if isinstance(composer, dict):
        extra = composer.get("extra")
        if isinstance(extra, dict) and isinstance(extra.get("public-dir"), str):
            return os.path.normpath(os.path.join(path, extra["public-dir"]))
    for docroot in DOCUMENT_ROOTS:
        candidate = os.path.normpath(os.path.join(path, docroot))
        if os.path.exists(candidate):
            return candidate
    return path


def guess_passthru(path: str) -> str:
    """Guess the front controller file name of a web root."""
    for index in FRONT_CONTROLLERS:
        if os.path.exists(os.path.join(path, index)):
            return index
    return "index.php"