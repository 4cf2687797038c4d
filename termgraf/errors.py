"""Error taxonomy.

Startup errors (fatal, reported by the CLI):
 - ConfigError: malformed document, unreadable template file, template syntax
 - UIInitError: the terminal could not be taken over

Per-cycle errors (logged by the updater, never fatal):
 - QueryError: backend, network, decode failure or cancellation
 - TemplateRenderError: query template failed to render
"""
from __future__ import annotations


class TermgrafError(Exception):
    """Base error (do not raise directly)."""


class ConfigError(TermgrafError):
    """Configuration could not be loaded."""


class UIInitError(TermgrafError):
    """Terminal subsystem failed to initialize."""


class QueryError(TermgrafError):
    """A widget query failed; no datasets were produced."""


class TemplateRenderError(TermgrafError):
    """A widget query template failed to render."""


__all__ = [
    "TermgrafError",
    "ConfigError",
    "UIInitError",
    "QueryError",
    "TemplateRenderError",
]
