"""Runtime style object used in application code and templates."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from .builder import ClassNameBuilder
from .models import AttributeValue

_DEFAULT_BUILDER = ClassNameBuilder()


class Style:
    """Immutable bag of style attributes that renders to a class string.

    ``str(Style(bg="red", _hover={"bg": "blue"}))`` gives
    ``"bg-red hover:bg-blue"``. Every keyword passed here is also visible to
    the static extractor, so the classes end up in the generated stylesheet.
    """

    def __init__(
        self,
        attributes: Optional[Mapping[str, AttributeValue]] = None,
        *,
        builder: Optional[ClassNameBuilder] = None,
        **style_attributes: AttributeValue,
    ) -> None:
        merged: Dict[str, AttributeValue] = dict(attributes or {})
        merged.update(style_attributes)
        self._attributes = merged
        self._builder = builder or _DEFAULT_BUILDER

    def to_list(self) -> List[str]:
        return self._builder.build(self._attributes)

    def to_dict(self) -> Dict[str, AttributeValue]:
        return dict(self._attributes)

    def to_html_attributes(self) -> Dict[str, str]:
        return {"class": str(self)}

    def merge(self, other: "Style | Mapping[str, AttributeValue]") -> "Style":
        """Deep-merge ``other`` into a new style; modifier scopes merge recursively."""
        other_attributes = other.to_dict() if isinstance(other, Style) else dict(other)
        return Style(_deep_merge(self._attributes, other_attributes), builder=self._builder)

    __add__ = merge

    def with_(self, **attributes: AttributeValue) -> "Style":
        """Return a copy with top-level attributes replaced."""
        merged = dict(self._attributes)
        merged.update(attributes)
        return Style(merged, builder=self._builder)

    def except_(self, *keys: str) -> "Style":
        return Style(
            {key: value for key, value in self._attributes.items() if key not in keys},
            builder=self._builder,
        )

    @property
    def empty(self) -> bool:
        return not self._attributes

    def __str__(self) -> str:
        return " ".join(self.to_list())

    def __html__(self) -> str:
        return str(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Style):
            return NotImplemented
        return self._attributes == other._attributes

    def __repr__(self) -> str:
        return f"Style({self._attributes!r})"


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = _deep_merge(current, value)
        else:
            result[key] = value
    return result


__all__ = ["Style"]
