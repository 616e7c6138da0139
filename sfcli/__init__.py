"""Helpers for local PHP development servers: FastCGI client, project configuration, application discovery and PHP binary lookup."""

__version__ = "0.1.0"