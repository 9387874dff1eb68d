"""Converts style attribute mappings into sorted utility class lists."""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional

from .config import ThemeEntry
from .models import ArbitraryValue, AttributeValue, ClassToken

MODIFIER_MARKER = "_"


def dasherize(value: str) -> str:
    return value.replace("_", "-")


class ClassNameBuilder:
    """Builds utility class tokens from an attribute mapping.

    ``{"bg": "red", "_hover": {"bg": "blue"}}`` becomes
    ``["bg-red", "hover:bg-blue"]``. Keys starting with ``_`` are modifiers
    whose nested tokens get ``<modifier>:`` prepended, outer to inner.
    """

    def __init__(
        self,
        theme: Optional[Mapping[str, ThemeEntry]] = None,
        *,
        prefix: str = "",
    ) -> None:
        self._theme = dict(theme or {})
        self._prefix = prefix
        self._aliases = {
            entry.alias: entry.token for entry in self._theme.values() if entry.alias
        }

    def build(self, mapping: Mapping[str, AttributeValue]) -> List[ClassToken]:
        tokens = self._build(mapping)
        if self._prefix:
            tokens = [f"{self._prefix}-{token}" for token in tokens]
        return sorted(set(tokens))

    def build_all(self, mappings: Iterable[Mapping[str, AttributeValue]]) -> List[ClassToken]:
        tokens: set[str] = set()
        for mapping in mappings:
            tokens.update(self.build(mapping))
        return sorted(tokens)

    def token_for(self, name: str) -> str:
        if name.startswith(MODIFIER_MARKER):
            return name[len(MODIFIER_MARKER) :]
        entry = self._theme.get(name)
        if entry is not None:
            return entry.token
        if name in self._aliases:
            return self._aliases[name]
        return dasherize(name)

    def _build(self, mapping: Mapping[str, AttributeValue]) -> List[ClassToken]:
        tokens: List[ClassToken] = []
        for name, value in mapping.items():
            tokens.extend(self._classes_for(str(name), value))
        return sorted(set(token for token in tokens if token))

    def _classes_for(self, name: str, value: AttributeValue) -> List[ClassToken]:
        token = self.token_for(name)
        if name.startswith(MODIFIER_MARKER):
            if not isinstance(value, Mapping):
                return []
            return [f"{token}:{nested}" for nested in self._build(value)]
        if isinstance(value, Mapping):
            return []
        if value is True or value == "true":
            return [token]
        if value is False or value == "false" or value is None:
            return []

        text = str(value)
        if isinstance(value, ArbitraryValue) or (text.startswith("[") and text.endswith("]")):
            return [f"{token}-{text}"]
        return ["-".join(part for part in (token, dasherize(text)) if part)]


__all__ = ["ClassNameBuilder", "MODIFIER_MARKER", "dasherize"]
