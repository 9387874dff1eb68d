"""Tests for the .classes artifact writer."""

from __future__ import annotations

from pathlib import Path

from twscan.compiler.output import OutputWriter


def test_write_mirrors_relative_path(tmp_path: Path) -> None:
    root = tmp_path / "app"
    writer = OutputWriter(tmp_path / "scratch", [str(root)])

    target = writer.write(str(root / "views" / "page.py"), ["p-2", "bg-red", "p-2"])

    assert target == tmp_path / "scratch" / "views" / "page.py.classes"
    assert target.read_text(encoding="utf-8") == "p-2\nbg-red"


def test_write_skips_empty_class_lists(tmp_path: Path) -> None:
    root = tmp_path / "app"
    writer = OutputWriter(tmp_path / "scratch", [str(root)])

    assert writer.write(str(root / "empty.py"), []) is None
    assert writer.write(str(root / "blank.py"), [""]) is None
    assert writer.artifacts() == []


def test_glob_roots_and_files_outside_roots(tmp_path: Path) -> None:
    writer = OutputWriter(tmp_path / "scratch", [f"{tmp_path}/app/**/*.py"])

    assert writer.artifact_path(str(tmp_path / "app" / "a" / "b.py")) == (
        tmp_path / "scratch" / "a" / "b.py.classes"
    )
    assert writer.artifact_path(str(tmp_path / "elsewhere" / "c.py")) == (
        tmp_path / "scratch" / "c.py.classes"
    )


def test_remove_and_clear(tmp_path: Path) -> None:
    root = tmp_path / "app"
    writer = OutputWriter(tmp_path / "scratch", [str(root)])
    writer.write(str(root / "a.py"), ["p-2"])
    writer.write(str(root / "nested" / "b.html"), ["m-1"])

    assert writer.remove(str(root / "a.py")) is True
    assert writer.remove(str(root / "a.py")) is False
    assert writer.artifacts() == [tmp_path / "scratch" / "nested" / "b.html.classes"]
    assert writer.clear() == 1
    assert writer.artifacts() == []
