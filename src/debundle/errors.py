"""Exceptions and warnings raised by debundle."""

from __future__ import annotations

__all__ = [
    "BundlingCancelled",
    "ConfigurationError",
    "DebundleError",
    "DegenerateEdgeWarning",
]


class DebundleError(Exception):
    """Base class for debundle errors."""


class ConfigurationError(DebundleError, ValueError):
    """Invalid options or graph input, raised before any computation starts."""


class BundlingCancelled(DebundleError):
    """The caller's cancellation check asked the run to stop between passes."""

    def __init__(self, completed_passes: int, total_passes: int) -> None:
        super().__init__(
            f"Bundling cancelled after {completed_passes} of {total_passes} passes"
        )
        self.completed_passes = completed_passes
        self.total_passes = total_passes


class DegenerateEdgeWarning(UserWarning):
    """Self-loops or zero-length edges were passed through unbundled."""
