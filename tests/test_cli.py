"""CLI parser and command behaviour tests."""

from __future__ import annotations

from typing import List, Optional

import pytest

from twscan import cli
from twscan.cli import _build_parser, main
from twscan.compiler import ScanResult
from twscan.config import TwscanConfig
from tests._fixtures.project_builder import ProjectBuilder


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "run"])
    assert args.verbose is True
    assert args.command == "run"
    assert args.path == "."


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["watch", "site", "--verbose"])
    assert args.verbose is True
    assert args.command == "watch"
    assert args.path == "site"


def test_cli_extract_requires_files() -> None:
    parser = _build_parser()
    args = parser.parse_args(["extract", "a.py", "b.html", "--config", "site"])
    assert args.files == ["a.py", "b.html"]
    assert args.config == "site"

    with pytest.raises(SystemExit):
        parser.parse_args(["extract"])


def test_extract_prints_classes(project: ProjectBuilder, capsys: pytest.CaptureFixture[str]) -> None:
    project.write({"app/page.py": 'tw(bg="red", color="white", _hover={"bg": "blue"})\n'})
    project.config()

    main(["extract", project.file("app/page.py"), "--config", str(project.root)])

    assert capsys.readouterr().out == "bg-red color-white hover:bg-blue\n"


def test_config_command_writes_tailwind_config(project: ProjectBuilder) -> None:
    config = project.config("content: [app]\nprefix: tw\n")

    main(["config", str(project.root)])

    rendered = (config.scratch_dir / "tailwind.config.js").read_text(encoding="utf-8")
    assert 'prefix: "tw-"' in rendered


def test_clear_cache_removes_cache_and_artifacts(
    project: ProjectBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    config = project.config()
    config.scratch_dir.mkdir(parents=True)
    (config.scratch_dir / "page.py.classes").write_text("p-2", encoding="utf-8")
    (config.scratch_dir / "ast_cache.json").write_text('{"x": 1}', encoding="utf-8")

    main(["clear-cache", str(project.root)])

    assert not (config.scratch_dir / "page.py.classes").exists()
    assert (config.scratch_dir / "ast_cache.json").read_text(encoding="utf-8") == "{}"
    assert "1 artifact(s)" in capsys.readouterr().out


def test_invalid_config_exits_with_error(project: ProjectBuilder) -> None:
    project.write({".twscan.yml": "- not a mapping\n"})

    with pytest.raises(SystemExit) as excinfo:
        main(["run", str(project.root)])

    assert excinfo.value.code == 1


class RecordingSession:
    def __init__(self) -> None:
        self.stopped = False

    def join(self, timeout: float | None = None) -> None:
        raise KeyboardInterrupt

    def stop(self, timeout: float | None = None) -> None:
        self.stopped = True


class RecordingRunner:
    instances: List["RecordingRunner"] = []

    def __init__(self, config: TwscanConfig) -> None:
        self.config = config
        self.watch_arguments: List[Optional[bool]] = []
        self.session = RecordingSession()
        self.last_result = ScanResult(compiled=True)
        RecordingRunner.instances.append(self)

    def run(self, watch: Optional[bool] = None) -> Optional[RecordingSession]:
        self.watch_arguments.append(watch)
        should_watch = self.config.watch if watch is None else watch
        return self.session if should_watch else None


def test_run_honours_watch_config_key(
    project: ProjectBuilder,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    project.config("content: [app]\nwatch: true\n")
    RecordingRunner.instances.clear()
    monkeypatch.setattr(cli, "Runner", RecordingRunner)

    main(["run", str(project.root)])

    runner = RecordingRunner.instances[0]
    assert runner.watch_arguments == [None]
    assert runner.session.stopped is True
    assert "Stopping watcher..." in capsys.readouterr().out


def test_run_without_watch_key_prints_output_path(
    project: ProjectBuilder,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    project.config()
    RecordingRunner.instances.clear()
    monkeypatch.setattr(cli, "Runner", RecordingRunner)

    main(["run", str(project.root)])

    assert RecordingRunner.instances[0].session.stopped is False
    assert "CSS written to" in capsys.readouterr().out
