"""Light/dark theme preference.

The preference lives in client-side storage under ``color-theme``.  Code
that needs it gets a ThemePreference wrapping whatever store applies: a
plain dict works, and the web app uses CookieStore.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol

logger = logging.getLogger(__name__)

THEME_STORAGE_KEY = "color-theme"
LIGHT = "light"
DARK = "dark"
THEMES = (LIGHT, DARK)

# One year; the preference should outlive the session.
COOKIE_MAX_AGE = 365 * 24 * 3600


class ThemeStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def __setitem__(self, key: str, value: str) -> None: ...


class ThemePreference:
    """Read, write and toggle the saved colour theme."""

    def __init__(self, store: ThemeStore, default: str = LIGHT) -> None:
        self.store = store
        self.default = default

    def read(self) -> str:
        saved = self.store.get(THEME_STORAGE_KEY)
        if saved in THEMES:
            return saved
        if saved is not None:
            logger.debug("Ignoring unknown saved theme %r", saved)
        return self.default

    def write(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme!r}")
        self.store[THEME_STORAGE_KEY] = theme

    def toggle(self) -> str:
        new_theme = LIGHT if self.read() == DARK else DARK
        self.write(new_theme)
        return new_theme

    def root_class(self) -> str:
        """CSS class for the document root: ``dark`` or empty."""
        return DARK if self.read() == DARK else ""


class CookieStore:
    """ThemeStore backed by request cookies, writing to a response."""

    def __init__(self, cookies: Mapping[str, str], response: Any = None) -> None:
        self._values = dict(cookies)
        self._response = response

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def __setitem__(self, key: str, value: str) -> None:
        self._values[key] = value
        if self._response is not None:
            self._response.set_cookie(key, value, max_age=COOKIE_MAX_AGE, samesite="lax")
