"""Errors raised while reading jigorders settings from the environment."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class ConfigurationError(RuntimeError):
    """A ``JIGORDERS_*`` value is present but unusable."""


class MissingConfigurationError(ConfigurationError):
    """Required ``JIGORDERS_*`` values are absent or blank."""

    def __init__(self, names: Sequence[str]) -> None:
        self.names = tuple(sorted(names))
        super().__init__(f"Missing configuration for: {', '.join(self.names)}")
