from __future__ import annotations

import logging
from dataclasses import dataclass

from .port import StoragePort

logger = logging.getLogger("commandbox")

DEFAULT_KEY_PREFIX = "commandbox:"

THEME_LIGHT = "light"
THEME_DARK = "dark"
THEMES = (THEME_LIGHT, THEME_DARK)


@dataclass(slots=True, frozen=True)
class StorageKeys:
    """Namespaced keys shared by the store and the presentation layer."""

    prefix: str = DEFAULT_KEY_PREFIX

    @property
    def commands(self) -> str:
        return f"{self.prefix}commands_v3"

    @property
    def folders(self) -> str:
        return f"{self.prefix}folders_v3"

    @property
    def settings(self) -> str:
        return f"{self.prefix}settings_v3"

    @property
    def theme(self) -> str:
        return f"{self.prefix}theme"


def read_theme(port: StoragePort, keys: StorageKeys | None = None) -> str:
    keys = keys or StorageKeys()
    raw = port.read(keys.theme)
    if raw is None:
        return THEME_LIGHT
    theme = raw.strip().strip('"')
    if theme not in THEMES:
        logger.warning("Ignoring unknown theme preference: %s", raw)
        return THEME_LIGHT
    return theme


def write_theme(port: StoragePort, theme: str, keys: StorageKeys | None = None) -> str:
    if theme not in THEMES:
        raise ValueError(f"Unknown theme: {theme}")
    keys = keys or StorageKeys()
    port.write(keys.theme, theme)
    return theme


__all__ = [
    "DEFAULT_KEY_PREFIX",
    "StorageKeys",
    "THEMES",
    "THEME_DARK",
    "THEME_LIGHT",
    "read_theme",
    "write_theme",
]
