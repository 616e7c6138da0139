"""Parsing of ``Link`` response headers to find resources to preload."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

PROXIED_HEADERS = (
    "Accept-Encoding",
    "Accept-Language",
    "Cache-Control",
    "Host",
    "User-Agent",
)


@dataclass
class LinkResource:
    """A URI found in a ``Link`` header with its parameters."""

    uri: str
    params: dict[str, str] = field(default_factory=dict)


def _canonical_key(key: str) -> str:
    return "-".join(part[:1].upper() + part[1:].lower() for part in key.split("-"))


def _as_list(value: str | Sequence[str]) -> list[str]:
    if isinstance(value, str):
        return [value]
    return list(value)


def parse_link_header(header: str) -> list[LinkResource]:
    """Parse a ``Link`` header.

    Accepted forms: ``</r>; as=script``, ``</r>; as=script,</r2>; as=style``
    and ``</r>;</r2>``.
    """
    resources: list[LinkResource] = []
    if not header:
        return resources
    for link in header.split(","):
        left, right = link.find("<"), link.find(">")
        if left == -1 or right == -1:
            continue
        resource = LinkResource(uri=link[left + 1 : right].strip())
        for param in link[right + 1 :].strip().split(";"):
            key, sep, value = param.strip().partition("=")
            key = key.strip()
            if not key:
                continue
            resource.params[key] = value.strip() if sep else key
        resources.append(resource)
    return resources


def is_remote_resource(resource: str) -> bool:
    """Tell whether a URI points to another host."""
    return resource.startswith(("//", "http://", "https://"))


def filter_proxied_headers(
    headers: Mapping[str, str | Sequence[str]],
) -> dict[str, list[str]]:
    """Keep only the request headers that are forwarded to pushed requests."""
    canonical = {_canonical_key(key): value for key, value in headers.items()}
    return {name: _as_list(canonical[name]) for name in PROXIED_HEADERS if name in canonical}


def preload_targets(
    link_headers: str | Iterable[str] | None,
    request_headers: Mapping[str, str | Sequence[str]],
) -> list[str]:
    """Return the local URIs to push for a response's ``Link`` headers.

    Nothing is pushed for a request that is itself a push (``X-Push`` header),
    nor for resources marked ``nopush`` or located on another host.
    """
    if not link_headers:
        return []
    if any(_canonical_key(key) == "X-Push" for key in request_headers):
        return []
    if isinstance(link_headers, str):
        link_headers = [link_headers]
    targets = []
    for header in link_headers:
        for resource in parse_link_header(header):
            if "nopush" in resource.params or is_remote_resource(resource.uri):
                continue
            targets.append(resource.uri)
    return targets