"""Mines style attribute mappings from calls in a syntax tree."""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Mapping, Optional

from tree_sitter import Node

from ..config import DEFAULT_COLOR_SCHEME, DEFAULT_STYLE_FUNCTIONS
from ..helpers import DEFAULT_WEIGHT, color_token
from ..logging import get_logger
from ..models import ArbitraryValue, AttributeMapping, AttributeValue
from .parser import SyntaxTree

ANY_CALL = "*"

# Only bare words, :symbols, quoted words and digits are ever interpreted.
_SAFE_LITERAL = re.compile(r"\A[:'\"A-Za-z0-9_]+\Z")
_SYMBOL = re.compile(r"\A:([A-Za-z_][A-Za-z0-9_]*)\Z")
_STRING_PREFIX = re.compile(r"\A([rRuUbB]*)(\"\"\"|'''|\"|')")

_NOT_A_LITERAL = object()


def literal_value(source: str, default: object = None) -> object:
    """Interpret ``source`` as a token helper argument without evaluating code.

    Integers, quoted words and ``:symbols`` map to values; anything else,
    including bare names, calls and attribute access, returns ``default``.
    """
    text = source.strip()
    if not _SAFE_LITERAL.match(text):
        return default
    if text.isdigit():
        return int(text)
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"":
        inner = text[1:-1]
        if "'" in inner or '"' in inner:
            return default
        return inner
    symbol = _SYMBOL.match(text)
    if symbol:
        return symbol.group(1)
    return default


class CallSiteExtractor:
    """Finds style API calls and returns their keyword-argument mappings.

    Keyword arguments of one call form one mapping; each positional dict
    literal forms another. Values that are not literals, nested dicts or
    recognised token helpers are dropped.
    """

    def __init__(
        self,
        style_functions: Iterable[str] = DEFAULT_STYLE_FUNCTIONS,
        *,
        color_scheme: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._functions = frozenset(style_functions)
        self._color_scheme = dict(DEFAULT_COLOR_SCHEME if color_scheme is None else color_scheme)
        self.logger = get_logger("extractor")

    def extract(self, tree: SyntaxTree) -> List[AttributeMapping]:
        mappings: List[AttributeMapping] = []
        self._visit(tree, tree.root, mappings)
        return mappings

    def _visit(self, tree: SyntaxTree, node: Node, mappings: List[AttributeMapping]) -> None:
        if node.type == "call" and self._is_style_call(tree, node):
            mappings.extend(self._call_mappings(tree, node))
        for child in node.children:
            self._visit(tree, child, mappings)

    def _is_style_call(self, tree: SyntaxTree, node: Node) -> bool:
        if ANY_CALL in self._functions:
            return True
        return _callee_name(tree, node) in self._functions

    def _call_mappings(self, tree: SyntaxTree, node: Node) -> List[AttributeMapping]:
        arguments = node.child_by_field_name("arguments")
        if arguments is None or arguments.type != "argument_list":
            return []
        mappings: List[AttributeMapping] = []
        keywords = self._keyword_mapping(tree, arguments)
        if keywords:
            mappings.append(keywords)
        for child in arguments.named_children:
            nested = self._mapping_literal(tree, child)
            if nested:
                mappings.append(nested)
        return mappings

    def _keyword_mapping(self, tree: SyntaxTree, arguments: Node) -> AttributeMapping:
        mapping: AttributeMapping = {}
        for child in arguments.named_children:
            if child.type == "keyword_argument":
                name = child.child_by_field_name("name")
                value = child.child_by_field_name("value")
                if name is not None and value is not None:
                    self._record(tree, mapping, tree.text(name), value)
            elif child.type == "dictionary_splat":
                self._merge_splat(tree, mapping, child)
        return mapping

    def _mapping_literal(self, tree: SyntaxTree, node: Node) -> Optional[AttributeMapping]:
        """Return the mapping for a ``{...}`` literal or ``dict(...)`` call, else ``None``."""
        if node.type == "dictionary":
            mapping: AttributeMapping = {}
            for child in node.named_children:
                if child.type == "pair":
                    key = child.child_by_field_name("key")
                    value = child.child_by_field_name("value")
                    if key is None or value is None:
                        continue
                    name = _string_literal(tree, key)
                    if isinstance(name, str) and name:
                        self._record(tree, mapping, name, value)
                elif child.type == "dictionary_splat":
                    self._merge_splat(tree, mapping, child)
            return mapping
        if node.type == "call" and _callee_name(tree, node) == "dict":
            arguments = node.child_by_field_name("arguments")
            if arguments is not None and arguments.type == "argument_list":
                return self._keyword_mapping(tree, arguments)
        return None

    def _record(self, tree: SyntaxTree, mapping: AttributeMapping, name: str, node: Node) -> None:
        value = self._value(tree, node)
        if value is None:
            return
        # Last literal for a repeated key wins.
        mapping[name] = value

    def _value(self, tree: SyntaxTree, node: Node) -> Optional[AttributeValue]:
        if node.type == "parenthesized_expression" and node.named_child_count == 1:
            return self._value(tree, node.named_children[0])

        nested = self._mapping_literal(tree, node)
        if nested is not None:
            return nested or None

        scalar = _scalar(tree, node)
        if scalar is not _NOT_A_LITERAL:
            return scalar  # type: ignore[return-value]

        if node.type == "call":
            return self._helper_value(tree, node)
        return None

    def _helper_value(self, tree: SyntaxTree, node: Node) -> Optional[AttributeValue]:
        name = _callee_name(tree, node)
        arguments = node.child_by_field_name("arguments")
        if arguments is None or arguments.type != "argument_list":
            return None
        positional, keywords = _split_arguments(tree, arguments)

        if name == "ab":
            if positional:
                raw = _string_literal(tree, positional[0])
                if isinstance(raw, str):
                    return ArbitraryValue(raw)
            return None

        if name not in ("color_token", "color_scheme_token"):
            return None

        token_node = positional[0] if positional else keywords.get("token")
        weight_node = positional[1] if len(positional) > 1 else keywords.get("weight")
        if token_node is None:
            return None
        token = literal_value(tree.text(token_node))
        weight = (
            literal_value(tree.text(weight_node), DEFAULT_WEIGHT)
            if weight_node is not None
            else DEFAULT_WEIGHT
        )
        if isinstance(weight, str) and weight.isdigit():
            weight = int(weight)
        if not isinstance(token, str) or not isinstance(weight, int):
            self.logger.debug(
                "Ignoring %s call with non-literal arguments in %s", name, tree.path
            )
            return None

        if name == "color_scheme_token":
            color = self._color_scheme.get(token)
            if color is None:
                self.logger.debug("Unknown color scheme token %r in %s", token, tree.path)
                return None
            return color_token(color, weight)
        return color_token(token, weight)

    def _merge_splat(self, tree: SyntaxTree, mapping: AttributeMapping, splat: Node) -> None:
        """Fold ``**{...}``, ``**dark(...)`` and ``**at("md", ...)`` into ``mapping``."""
        if not splat.named_children:
            return
        target = splat.named_children[0]
        literal = self._mapping_literal(tree, target)
        if literal is not None:
            mapping.update(literal)
            return
        if target.type != "call":
            return
        name = _callee_name(tree, target)
        arguments = target.child_by_field_name("arguments")
        if name not in ("dark", "at") or arguments is None or arguments.type != "argument_list":
            return
        scope = self._keyword_mapping(tree, arguments)
        if not scope:
            return
        if name == "dark":
            mapping["_dark"] = scope
            return
        positional, _ = _split_arguments(tree, arguments)
        breakpoint = literal_value(tree.text(positional[0])) if positional else None
        if isinstance(breakpoint, (str, int)) and not isinstance(breakpoint, bool):
            mapping[f"_{breakpoint}"] = scope


def _callee_name(tree: SyntaxTree, call: Node) -> Optional[str]:
    function = call.child_by_field_name("function")
    if function is None:
        return None
    if function.type == "identifier":
        return tree.text(function)
    if function.type == "attribute":
        attribute = function.child_by_field_name("attribute")
        return tree.text(attribute) if attribute is not None else None
    return None


def _split_arguments(tree: SyntaxTree, arguments: Node) -> tuple[List[Node], Dict[str, Node]]:
    positional: List[Node] = []
    keywords: Dict[str, Node] = {}
    for child in arguments.named_children:
        if child.type == "keyword_argument":
            name = child.child_by_field_name("name")
            value = child.child_by_field_name("value")
            if name is not None and value is not None:
                keywords[tree.text(name)] = value
        elif child.type not in ("dictionary_splat", "list_splat", "comment"):
            positional.append(child)
    return positional, keywords


def _scalar(tree: SyntaxTree, node: Node) -> object:
    if node.type == "string":
        text = _string_literal(tree, node)
        return _NOT_A_LITERAL if text is None else text
    if node.type == "integer":
        try:
            return int(tree.text(node).replace("_", ""), 0)
        except ValueError:
            return _NOT_A_LITERAL
    if node.type == "float":
        try:
            return float(tree.text(node).replace("_", ""))
        except ValueError:
            return _NOT_A_LITERAL
    if node.type == "unary_operator":
        operand = node.child_by_field_name("argument")
        operator = node.child_by_field_name("operator")
        if operand is None or operator is None or operand.type not in ("integer", "float"):
            return _NOT_A_LITERAL
        value = _scalar(tree, operand)
        sign = tree.text(operator)
        if value is _NOT_A_LITERAL or sign not in ("-", "+"):
            return _NOT_A_LITERAL
        return -value if sign == "-" else value  # type: ignore[operator]
    if node.type == "true":
        return True
    if node.type == "false":
        return False
    if node.type == "identifier":
        # Jinja spells booleans in lower case.
        text = tree.text(node)
        if text == "true":
            return True
        if text == "false":
            return False
    return _NOT_A_LITERAL


def _string_literal(tree: SyntaxTree, node: Node) -> Optional[str]:
    """Return the raw body of a plain string literal; ``None`` for f-strings and others."""
    if node.type != "string":
        return None
    if any(child.type == "interpolation" for child in node.children):
        return None
    text = tree.text(node)
    match = _STRING_PREFIX.match(text)
    if match is None:
        return None
    quote = match.group(2)
    body = text[match.end() :]
    if not body.endswith(quote):
        return None
    return body[: -len(quote)]


__all__ = ["ANY_CALL", "CallSiteExtractor", "literal_value"]
