"""twscan: static Tailwind class extraction for Python and Jinja sources."""

from .helpers import ab, at, color_scheme_token, color_token, dark, tailwind, template_globals, tw
from .models import ArbitraryValue
from .style import Style

__version__ = "0.1.0"

__all__ = [
    "ArbitraryValue",
    "Style",
    "__version__",
    "ab",
    "at",
    "color_scheme_token",
    "color_token",
    "dark",
    "tailwind",
    "template_globals",
    "tw",
]
