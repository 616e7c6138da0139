"""Projects known to the proxy and to the running local servers."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ConfiguredProject:
    """A project directory with its port, scheme and proxy domains."""

    port: int = 0
    scheme: str = ""
    domains: list[str] = field(default_factory=list)


def get_configured_and_running(
    proxy_projects: dict[str, ConfiguredProject],
    running_projects: dict[str, ConfiguredProject],
) -> dict[str, ConfiguredProject]:
    """Merge running projects into the proxy projects and return the merged mapping.

    The proxy mapping is updated in place.
    """
    projects = proxy_projects
    for directory, running in running_projects.items():
        existing = projects.get(directory)
        if existing is not None:
            existing.port = running.port
            existing.scheme = running.scheme
        else:
            projects[directory] = ConfiguredProject(port=running.port, scheme=running.scheme)
    return projects