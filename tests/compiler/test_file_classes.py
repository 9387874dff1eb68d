"""End-to-end tests for the per-file extraction pipeline."""

from __future__ import annotations

from twscan.compiler.file_classes import FileClassesExtractor
from tests._fixtures.project_builder import ProjectBuilder


def test_extracts_classes_from_python_source(project: ProjectBuilder) -> None:
    project.write({"app/page.py": 'tw(bg="red", color="white", _hover={"bg": "blue"})\n'})
    extractor = FileClassesExtractor.from_config(project.config())

    assert extractor.extract(project.file("app/page.py")) == [
        "bg-red",
        "color-white",
        "hover:bg-blue",
    ]


def test_prefix_is_applied_to_every_class(project: ProjectBuilder) -> None:
    project.write({"app/page.py": 'tw(bg="red", color="white", _hover={"bg": "blue"})\n'})
    config = project.config("content: [app]\nprefix: tw\n")

    assert FileClassesExtractor.from_config(config).extract(project.file("app/page.py")) == [
        "tw-bg-red",
        "tw-color-white",
        "tw-hover:bg-blue",
    ]


def test_prefix_can_be_left_to_tailwind(project: ProjectBuilder) -> None:
    project.write({"app/page.py": 'tw(bg="red")\n'})
    config = project.config("content: [app]\nprefix: tw\nprefix_classes: false\n")

    assert FileClassesExtractor.from_config(config).extract(project.file("app/page.py")) == [
        "bg-red"
    ]


def test_directives_survive_syntax_errors(project: ProjectBuilder) -> None:
    project.write(
        {
            "app/broken.py": """
            def broken(:
                pass
            # @tw-whitelist px-4 py-2
            """
        }
    )
    extractor = FileClassesExtractor.from_config(project.config())

    assert extractor.extract(project.file("app/broken.py")) == ["px-4", "py-2"]


def test_template_classes_and_directives(project: ProjectBuilder) -> None:
    project.write(
        {"app/page.html": '<div class="{{ tw(p=2, flex=true) }}">{# @tw-whitelist mt-4 #}</div>\n'}
    )
    extractor = FileClassesExtractor.from_config(project.config())

    assert extractor.extract(project.file("app/page.html")) == ["flex", "p-2", "mt-4"]


def test_repeated_extraction_is_served_from_cache(project: ProjectBuilder) -> None:
    project.write({"app/page.py": "tw(p=2)\n"})
    config = project.config()
    extractor = FileClassesExtractor.from_config(config)
    first = extractor.extract(project.file("app/page.py"))

    project.write({"app/page.py": "tw(p=4)\n"})
    project.touch_later("app/page.py")

    assert first == ["p-2"]
    assert extractor.extract(project.file("app/page.py")) == ["p-4"]
    assert (config.scratch_dir / "ast_cache.json").exists()


def test_missing_file_yields_no_classes(project: ProjectBuilder) -> None:
    extractor = FileClassesExtractor.from_config(project.config())

    assert extractor.extract(project.file("app/missing.py")) == []


def test_template_text_in_docstring_does_not_hide_module_classes(
    project: ProjectBuilder,
) -> None:
    project.write(
        {
            "app/card.py": '''
            def card(title):
                """Renders {{ title ~ "!" }}."""
                return tw(p=2, bg="red")
            '''
        }
    )
    extractor = FileClassesExtractor.from_config(project.config())

    assert extractor.extract(project.file("app/card.py")) == ["bg-red", "p-2"]


def test_jinja_only_operators_in_templates(project: ProjectBuilder) -> None:
    project.write(
        {"app/page.html": '<p class="{{ tw(p=2) }}">{{ "a" ~ name }}{{ name if name }}</p>\n'}
    )
    extractor = FileClassesExtractor.from_config(project.config())

    assert extractor.extract(project.file("app/page.html")) == ["p-2"]
