"""Helpers for running PHP binaries: binary names, script directory and ini lookup."""

from __future__ import annotations

import os
import shutil
import signal
from dataclasses import dataclass, field
from typing import Iterator, Mapping

PHP_BINARY_NAMES = (
    "php",
    "pecl",
    "pear",
    "php-fpm",
    "php-cgi",
    "php-config",
    "phpdbg",
    "phpize",
)

# PHP CLI options that take a value in the next argument when given alone
_OPTIONS_WITH_VALUE = ("-c", "-d", "-r", "-B", "-R", "-F", "-E", "-S", "-t", "-z")

PHP_INI_FILENAME = "php.ini"


def get_binary_names() -> list[str]:
    """Return the names of the PHP binaries the CLI knows how to run."""
    return list(PHP_BINARY_NAMES)


def is_binary_name(name: str) -> bool:
    """Tell whether ``name`` is one of the PHP binary names."""
    return name in PHP_BINARY_NAMES


def _script_from_args(args: list[str]) -> str:
    skip_next = False
    for i, arg in enumerate(args):
        if skip_next:
            skip_next = False
            continue
        if arg.startswith("-f"):
            if len(arg) > 2:
                return arg[2:]
            if i + 1 < len(args):
                return args[i + 1]
            continue
        if any(arg.startswith(flag) for flag in _OPTIONS_WITH_VALUE) and len(arg) == 2:
            skip_next = True
        if arg == "--":
            break
        if arg.startswith("-"):
            continue
        return arg
    return ""


def detect_script_dir(args: list[str]) -> str:
    """Return the directory of the PHP script named in ``args``.

    Falls back to the working directory (or ``/`` if it is unknown).
    """
    script = _script_from_args(list(args))
    if script:
        return os.path.dirname(os.path.abspath(script))
    try:
        return os.getcwd()
    except OSError:
        return "/"


def phpini_dir_for_dir(script_dir: str) -> str | None:
    """Return the closest directory, from ``script_dir`` up, holding a ``php.ini``."""
    current = script_dir
    while True:
        if os.path.exists(os.path.join(current, PHP_INI_FILENAME)):
            return current
        up = os.path.dirname(current) or "."
        if up == current or up == ".":
            return None
        current = up


def paths_to_watch(script_dir: str) -> list[str]:
    """Return the files whose changes require restarting PHP."""
    directory = phpini_dir_for_dir(script_dir)
    if directory is None:
        return []
    return [os.path.join(directory, PHP_INI_FILENAME)]


def should_signal_be_ignored(sig: int) -> bool:
    """Tell whether a received signal must not be forwarded to the PHP child."""
    if os.name == "nt":
        return False
    return sig == signal.SIGCHLD


def symlink(source: str, destination: str) -> None:
    """Link ``destination`` to ``source`` (a plain copy on Windows)."""
    if os.name == "nt":
        shutil.copyfile(source, destination)
        return
    os.symlink(source, destination)


@dataclass
class PHPValues:
    """Ordered PHP ini settings."""

    entries: list[tuple[str, str]] = field(default_factory=list)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def merge(self, values: Mapping[str, str]) -> None:
        """Append the settings of ``values``."""
        self.entries.extend((str(key), str(val)) for key, val in values.items())

    def to_bytes(self) -> bytes:
        """Return the settings as ``key=value`` lines."""
        return b"\n".join(f"{key}={val}".encode("utf-8") for key, val in self.entries)