"""Text-level fallback: classes force-listed with ``@tw-whitelist`` comments."""

from __future__ import annotations

import re
from typing import Iterable, List

# ``# @tw-whitelist px-4 py-2`` on its own line.
_LINE_PATTERN = re.compile(r"^\s*#\s*@tw-whitelist\s+(.+)$", re.MULTILINE)
# Inside ``{% ... %}`` / ``{{ ... }}`` blocks.
_CODE_BLOCK = re.compile(r"\{[%{]-?(.*?)-?[%}]\}", re.DOTALL)
_BLOCK_COMMENT = re.compile(r"#\s*@tw-whitelist\s+(.+)$", re.MULTILINE)
# ``{# @tw-whitelist ... #}`` and ``<!-- @tw-whitelist ... -->``.
_TEMPLATE_COMMENT = re.compile(r"\{#-?\s*@tw-whitelist\s+(.+?)\s*-?#\}", re.DOTALL)
_HTML_COMMENT = re.compile(r"<!--\s*@tw-whitelist\s+(.+?)\s*-->", re.DOTALL)


class DirectiveCommentExtractor:
    """Collects class names listed after ``@tw-whitelist`` markers."""

    def extract(self, text: str) -> List[str]:
        return _unique(
            token
            for match in _LINE_PATTERN.finditer(text)
            for token in match.group(1).split()
        )

    def extract_from_template(self, text: str) -> List[str]:
        tokens: List[str] = []
        for block in _CODE_BLOCK.finditer(text):
            for match in _BLOCK_COMMENT.finditer(block.group(1)):
                tokens.extend(match.group(1).split())
        for pattern in (_TEMPLATE_COMMENT, _HTML_COMMENT):
            for match in pattern.finditer(text):
                tokens.extend(match.group(1).split())
        return _unique(tokens)


def _unique(tokens: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(tokens))


__all__ = ["DirectiveCommentExtractor"]
