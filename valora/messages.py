"""Message Catalog

Error message templates looked up by key. English templates ship with the
package as YAML; other locales are added at runtime. Lookup falls back to
English, then to the key itself, so a missing translation never raises.

Usage:
    from valora.messages import catalog

    catalog.add_translations("de", {"required": "ist erforderlich"})
    catalog.locale = "de"
    catalog.t("min", value=3)  # English fallback: "must be at least 3"
"""
from __future__ import annotations

import copy
import re
import threading
from importlib import resources
from typing import Any, Mapping

import yaml

from valora.config import get_settings

DEFAULT_LOCALE = "en"

_PLACEHOLDER = re.compile(r"%\{(\w+)\}")


def _load_defaults() -> dict[str, dict[str, str]]:
    text = (resources.files("valora") / "locales" / "en.yaml").read_text(encoding="utf-8")
    return {DEFAULT_LOCALE: dict(yaml.safe_load(text) or {})}


class MessageCatalog:
    """Locale-keyed message templates with %{name} interpolation."""

    def __init__(self, locale: str = DEFAULT_LOCALE):
        self._lock = threading.Lock()
        self._initial_locale = locale
        self._defaults = _load_defaults()
        self._translations = copy.deepcopy(self._defaults)
        self._locale = locale

    @property
    def locale(self) -> str:
        return self._locale

    @locale.setter
    def locale(self, value: str) -> None:
        self._locale = str(value)

    def add_translations(self, locale: str, messages: Mapping[str, str]) -> None:
        """Add or override templates for a locale."""
        with self._lock:
            merged = {**self._translations.get(locale, {}), **{str(k): str(v) for k, v in messages.items()}}
            self._translations = {**self._translations, locale: merged}

    def template(self, key: str) -> str:
        translations = self._translations
        return (translations.get(self._locale, {}).get(key)
                or translations[DEFAULT_LOCALE].get(key)
                or key)

    def t(self, key: str, **values: Any) -> str:
        """Translate ``key`` and interpolate ``values`` into the template."""
        template = self.template(key)
        if not values: return template
        return _PLACEHOLDER.sub(lambda m: str(values[m.group(1)]) if m.group(1) in values else m.group(0), template)

    def has(self, key: str) -> bool:
        return key in self._translations.get(self._locale, {}) or key in self._translations[DEFAULT_LOCALE]

    def reset(self) -> None:
        """Drop runtime translations and return to the default locale."""
        with self._lock:
            self._translations = copy.deepcopy(self._defaults)
            self._locale = self._initial_locale


catalog = MessageCatalog(get_settings().LOCALE)


def t(key: str, **values: Any) -> str:
    """Convenience lookup against the process-wide catalog."""
    return catalog.t(key, **values)
