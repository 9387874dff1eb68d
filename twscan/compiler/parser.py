"""Source parsing for Python files and Jinja templates."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import tree_sitter_python as tspython
from jinja2 import Environment
from jinja2.exceptions import TemplateSyntaxError
from tree_sitter import Language, Node, Parser

from ..logging import get_logger

PYTHON_SUFFIXES = (".py",)
TEMPLATE_SUFFIXES = (".jinja", ".jinja2", ".j2", ".html")
SUPPORTED_SUFFIXES = PYTHON_SUFFIXES + TEMPLATE_SUFFIXES

_PY_LANGUAGE = Language(tspython.language())

# Triple-quoted literals are the only strings that can hold an embedded template.
_TRIPLE_QUOTED = re.compile(r"(\"\"\"|''')(.*?)\1", re.DOTALL)
_TEMPLATE_DELIMITERS = ("{{", "{%")
_ELSE_NONE = " else None"

_TEMPLATE_ENV = Environment()


@dataclass
class SyntaxTree:
    """Parsed code for one file; lives only for one extraction call."""

    path: str
    root: Node
    source: bytes

    def text(self, node: Node) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def dialect_for(path: str) -> Optional[str]:
    lower = path.lower()
    if lower.endswith(PYTHON_SUFFIXES):
        return "python"
    if lower.endswith(TEMPLATE_SUFFIXES):
        return "template"
    return None


def template_fragments(template: str) -> List[str]:
    """Return the expression code embedded in a Jinja template.

    ``{{ ... }}`` bodies are returned whole; of ``{% ... %}`` statements only
    the right-hand side of ``set`` assignments is kept. Jinja-only syntax is
    rewritten to its Python equivalent: ``~`` becomes ``+`` and an inline
    ``if`` without ``else`` gets ``else None``. Raises ``TemplateSyntaxError``
    when the template cannot be tokenised.
    """
    fragments: List[str] = []
    current: Optional[List[Tuple[str, str]]] = None
    in_block = False
    for _, token, value in _TEMPLATE_ENV.lex(template):
        if token in ("variable_begin", "block_begin"):
            current = []
            in_block = token == "block_begin"
        elif token in ("variable_end", "block_end"):
            if current is not None:
                tokens = _set_expression(current) if in_block else current
                code = _as_python(tokens)
                if code:
                    fragments.append(code)
            current = None
        elif current is not None:
            current.append((token, value))
    return fragments


def embedded_templates(content: str) -> List[str]:
    """Bodies of triple-quoted strings that contain template delimiters."""
    return [
        match.group(2)
        for match in _TRIPLE_QUOTED.finditer(content)
        if any(delimiter in match.group(2) for delimiter in _TEMPLATE_DELIMITERS)
    ]


def embedded_template_code(content: str) -> List[str]:
    """Pull expression fragments out of template text held in triple-quoted strings."""
    fragments: List[str] = []
    for body in embedded_templates(content):
        fragments.extend(template_fragments(body))
    return fragments


def _set_expression(tokens: List[Tuple[str, str]]) -> List[Tuple[str, str]]:
    significant = [(index, item) for index, item in enumerate(tokens) if item[0] != "whitespace"]
    if not significant or significant[0][1] != ("name", "set"):
        return []
    for index, item in significant[1:]:
        if item == ("operator", "="):
            return tokens[index + 1 :]
    # {% set name %}...{% endset %} captures markup, not code.
    return []


def _as_python(tokens: List[Tuple[str, str]]) -> str:
    parts: List[str] = []
    # Inline ifs still waiting for an else, one counter per bracket depth.
    pending = [0]
    for token, value in tokens:
        if token == "operator":
            if value in ("(", "[", "{"):
                pending.append(0)
            elif value in (")", "]", "}"):
                _close_inline_ifs(parts, pending.pop())
            elif value == ",":
                _close_inline_ifs(parts, pending[-1])
                pending[-1] = 0
            elif value == "~":
                value = "+"
        elif token == "name":
            if value == "if":
                pending[-1] += 1
            elif value == "else" and pending[-1]:
                pending[-1] -= 1
        parts.append(value)
    _close_inline_ifs(parts, pending[0])
    return "".join(parts).strip()


def _close_inline_ifs(parts: List[str], count: int) -> None:
    if count:
        parts[:] = ["".join(parts).rstrip() + _ELSE_NONE * count]


class SourceParser:
    """Turns Python files and Jinja templates into tree-sitter syntax trees."""

    def __init__(self) -> None:
        self._parser = Parser(_PY_LANGUAGE)
        self._lock = threading.Lock()
        self.logger = get_logger("parser")

    def parse(self, path: str, content: Optional[str] = None) -> Optional[SyntaxTree]:
        """Return the tree for ``path`` or ``None`` when it cannot be used.

        The host module and every template expression are checked on their
        own, so one bad expression only drops itself. Syntax errors and
        missing files are logged and skipped; empty code is skipped silently.
        """
        dialect = dialect_for(path)
        if dialect is None:
            return None
        try:
            if content is None:
                with open(path, encoding="utf-8") as handle:
                    content = handle.read()
            if dialect == "template":
                host = None
                fragments = template_fragments(content)
            else:
                host = content
                fragments = self._embedded_fragments(path, content)
        except FileNotFoundError:
            self.logger.warning("File not found: %s", path)
            return None
        except TemplateSyntaxError as exc:
            self.logger.warning(
                "Failed to read template code in %s: %s (line %s). Skipping...",
                path,
                exc.message,
                exc.lineno,
            )
            return None
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.error("Unexpected error reading %s: %s", path, exc)
            return None

        units: List[str] = []
        if host is not None and host.strip():
            error_line = self._error_line(host)
            if error_line is None:
                units.append(host)
            else:
                self.logger.warning(
                    "Failed to parse %s: syntax error near line %d. Skipping...",
                    path,
                    error_line,
                )
        for fragment in fragments:
            # Parenthesised so multi-line expressions stay one statement.
            code = f"({fragment})"
            if self._error_line(code) is None:
                units.append(code)
            else:
                self.logger.warning(
                    "Skipping template expression in %s: %r is not valid Python",
                    path,
                    fragment,
                )

        if not units:
            return None
        source = "\n".join(units).encode("utf-8")
        with self._lock:
            tree = self._parser.parse(source)
        return SyntaxTree(path=path, root=tree.root_node, source=source)

    def _embedded_fragments(self, path: str, content: str) -> List[str]:
        fragments: List[str] = []
        for body in embedded_templates(content):
            try:
                fragments.extend(template_fragments(body))
            except TemplateSyntaxError as exc:
                self.logger.warning(
                    "Skipping embedded template in %s: %s (line %s)",
                    path,
                    exc.message,
                    exc.lineno,
                )
        return fragments

    def _error_line(self, code: str) -> Optional[int]:
        with self._lock:
            root = self._parser.parse(code.encode("utf-8")).root_node
        if not root.has_error:
            return None
        error = next(_error_nodes(root), root)
        return error.start_point[0] + 1


def _error_nodes(node: Node) -> Iterator[Node]:
    if node.type == "ERROR" or node.is_missing:
        yield node
        return
    for child in node.children:
        if child.has_error:
            yield from _error_nodes(child)


__all__ = [
    "PYTHON_SUFFIXES",
    "SUPPORTED_SUFFIXES",
    "TEMPLATE_SUFFIXES",
    "SourceParser",
    "SyntaxTree",
    "dialect_for",
    "embedded_template_code",
    "embedded_templates",
    "template_fragments",
]
