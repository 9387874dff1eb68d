"""Tests for the Python/Jinja source parser."""

from __future__ import annotations

from pathlib import Path

import pytest
from jinja2.exceptions import TemplateSyntaxError

from twscan.compiler.parser import (
    SourceParser,
    dialect_for,
    embedded_template_code,
    template_fragments,
)


def test_dialect_for_known_suffixes() -> None:
    assert dialect_for("app/views.py") == "python"
    assert dialect_for("templates/page.html") == "template"
    assert dialect_for("templates/page.J2") == "template"
    assert dialect_for("styles.css") is None


def test_parse_python_source() -> None:
    tree = SourceParser().parse("views.py", 'tw(bg="red")\n')

    assert tree is not None
    assert tree.root.type == "module"
    assert tree.text(tree.root).strip() == 'tw(bg="red")'


def test_template_fragments_keep_expressions_and_set_values() -> None:
    template = (
        "{% set card = tw(p=2) %}\n"
        "{% if show %}<div class=\"{{ tw(m=1) }}\">{{ title }}</div>{% endif %}"
    )

    assert template_fragments(template) == ["tw(p=2)", "tw(m=1)", "title"]


def test_template_fragments_raise_on_broken_template() -> None:
    with pytest.raises(TemplateSyntaxError):
        template_fragments('{{ tw(bg="red" }}')


def test_parse_template_source() -> None:
    tree = SourceParser().parse("page.html", '<div class="{{ tw(p=2, flex=true) }}"></div>')

    assert tree is not None
    assert "tw(p=2, flex=true)" in tree.text(tree.root)


def test_embedded_template_code_in_triple_quoted_strings() -> None:
    content = 'PAGE = """<p class="{{ tw(p=4) }}"></p>"""\nPLAIN = """no template here"""\n'

    assert embedded_template_code(content) == ["tw(p=4)"]

    tree = SourceParser().parse("views.py", content)
    assert tree is not None
    assert "tw(p=4)" in tree.text(tree.root).splitlines()[-1]


def test_parse_syntax_error_returns_none() -> None:
    assert SourceParser().parse("broken.py", 'tw(bg="red"\n') is None


def test_parse_broken_template_returns_none() -> None:
    assert SourceParser().parse("broken.html", "{{ tw(p=2 }}") is None


def test_parse_missing_file_returns_none(tmp_path: Path) -> None:
    assert SourceParser().parse(str(tmp_path / "missing.py")) is None


def test_parse_empty_and_unsupported_sources() -> None:
    parser = SourceParser()

    assert parser.parse("empty.py", "   \n") is None
    assert parser.parse("plain.html", "<p>no code</p>") is None
    assert parser.parse("styles.css", ".a { color: red; }") is None


def test_template_fragments_rewrite_jinja_operators() -> None:
    template = (
        '{{ "a" ~ name }}'
        "{{ name if name }}"
        '{{ tw(p=2 if wide, m=1) }}'
        '{{ "x" if a else "y" }}'
    )

    assert template_fragments(template) == [
        '"a" + name',
        "name if name else None",
        "tw(p=2 if wide else None, m=1)",
        '"x" if a else "y"',
    ]


def test_template_fragments_keep_tilde_inside_strings() -> None:
    assert template_fragments('{{ "a ~ b" ~ c }}') == ['"a ~ b" + c']


def test_parse_template_with_concatenation() -> None:
    tree = SourceParser().parse(
        "page.html", '<p class="{{ tw(p=2) }}">{{ "a" ~ name }}</p>{{ name if name }}'
    )

    assert tree is not None
    assert "tw(p=2)" in tree.text(tree.root)


def test_invalid_template_expression_skips_only_itself() -> None:
    tree = SourceParser().parse("page.html", "{{ tw(p=2) }}{{ items | map(attribute=) }}")

    assert tree is not None
    text = tree.text(tree.root)
    assert "tw(p=2)" in text
    assert "attribute" not in text


def test_invalid_embedded_template_keeps_host_module() -> None:
    content = (
        "def card():\n"
        '    """Title: {{ title ~ "!" }} {{ broken( }}"""\n'
        '    return tw(p=2, bg="red")\n'
    )

    tree = SourceParser().parse("views.py", content)

    assert tree is not None
    assert 'tw(p=2, bg="red")' in tree.text(tree.root)


def test_invalid_host_keeps_embedded_expressions() -> None:
    content = 'PAGE = """<p class="{{ tw(p=4) }}"></p>"""\ndef broken(:\n'

    tree = SourceParser().parse("views.py", content)

    assert tree is not None
    assert tree.text(tree.root).strip() == "(tw(p=4))"
