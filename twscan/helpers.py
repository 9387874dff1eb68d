"""Helper functions for building class strings in code and templates.

Register them as Jinja globals to use the same calls inside templates::

    env.globals.update(twscan.helpers.template_globals())
"""

from __future__ import annotations

from typing import Callable, Dict, Mapping, Optional

from .config import DEFAULT_COLOR_SCHEME
from .models import ArbitraryValue, AttributeValue
from .style import Style

DEFAULT_WEIGHT = 500


def tailwind(**style_attributes: AttributeValue) -> str:
    return str(Style(**style_attributes))


tw = tailwind


def ab(value: str) -> ArbitraryValue:
    """Wrap ``value`` as an arbitrary value: ``ab("10px")`` renders ``[10px]``."""
    return ArbitraryValue(value)


def color_token(token: str, weight: int = DEFAULT_WEIGHT) -> str:
    return f"{token}-{weight}"


def color_scheme_token(
    token: str,
    weight: int = DEFAULT_WEIGHT,
    *,
    scheme: Optional[Mapping[str, str]] = None,
) -> str:
    """Resolve a colour-scheme name (``primary``) to a colour token (``purple-500``)."""
    palette = DEFAULT_COLOR_SCHEME if scheme is None else scheme
    try:
        color = palette[str(token)]
    except KeyError:
        raise KeyError(f"Unknown color scheme token: {token}") from None
    return color_token(color, weight)


def dark(**style_attributes: AttributeValue) -> Dict[str, AttributeValue]:
    """Scope attributes to dark mode: ``tw(bg="white", **dark(bg="gray"))``."""
    return {"_dark": style_attributes}


def at(breakpoint: str, **style_attributes: AttributeValue) -> Dict[str, AttributeValue]:
    """Scope attributes to a breakpoint: ``tw(p=2, **at("md", p=4))``."""
    return {f"_{breakpoint}": style_attributes}


def template_globals() -> Dict[str, Callable[..., object]]:
    return {
        "tailwind": tailwind,
        "tw": tw,
        "ab": ab,
        "color_token": color_token,
        "color_scheme_token": color_scheme_token,
        "dark": dark,
        "at": at,
        "Style": Style,
    }


__all__ = [
    "ab",
    "at",
    "color_scheme_token",
    "color_token",
    "dark",
    "tailwind",
    "template_globals",
    "tw",
]
