"""Invocation of the external Tailwind CLI over the extracted artifacts."""

from __future__ import annotations

import shlex
import subprocess
from pathlib import Path
from typing import Callable, List, Sequence

from jinja2 import Environment, FileSystemLoader

from ..config import TwscanConfig
from ..logging import get_logger
from .output import ARTIFACT_SUFFIX

CONFIG_FILENAME = "tailwind.config.js"
_TEMPLATE_NAME = "tailwind.config.js.j2"

CommandRunner = Callable[[Sequence[str]], int]
ChangeListener = Callable[[Path], None]


class TailwindCompiler:
    """Renders a Tailwind config for the content roots and runs the CLI once per call.

    Failures are logged and reported through the return value of
    :meth:`compile`; they never raise.
    """

    def __init__(
        self,
        config: TwscanConfig,
        *,
        runner: CommandRunner | None = None,
        templates_dir: Path | None = None,
    ) -> None:
        self.config = config
        self._runner = runner or self._default_runner
        self._env = Environment(
            loader=FileSystemLoader(str(templates_dir or Path(__file__).with_name("templates"))),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._listeners: List[ChangeListener] = []
        self.logger = get_logger("tailwind")

    @property
    def config_path(self) -> Path:
        return self.config.scratch_dir / CONFIG_FILENAME

    @property
    def output_path(self) -> Path:
        return self.config.output_path

    def subscribe(self, listener: ChangeListener) -> None:
        """Register a callback notified with the CSS path after each successful compile."""
        self._listeners.append(listener)

    def content_paths(self) -> List[str]:
        paths: List[str] = []
        for root in self.config.content_roots:
            if Path(root).is_dir():
                paths.append(f"{root.rstrip('/')}/**/*")
            else:
                paths.append(root)
        paths.append(f"{self.config.scratch_dir}/**/*{ARTIFACT_SUFFIX}")
        return paths

    def render_config(self) -> str:
        compiler = self.config.compiler
        template = self._env.get_template(_TEMPLATE_NAME)
        prefix = f"{self.config.prefix}-" if self.config.prefix else ""
        return template.render(
            content=self.content_paths(),
            prefix=prefix,
            important=compiler.important,
            dark_mode=compiler.dark_mode,
            safelist=compiler.safelist,
            blocklist=compiler.blocklist,
            screens=compiler.screens,
            plugins=compiler.plugins,
        )

    def write_config(self) -> Path:
        path = self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render_config(), encoding="utf-8")
        return path

    def command(self) -> List[str]:
        args = shlex.split(self.config.compiler.command)
        args.extend(["-c", str(self.config_path), "-o", str(self.output_path)])
        if self.config.compiler.minify:
            args.append("--minify")
        return args

    def compile(self) -> bool:
        """Write the config, run the CLI (blocking, no retry) and notify listeners."""
        self.logger.info("Recompiling Tailwind CSS into %s", self.output_path)
        try:
            self.write_config()
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            self.logger.error("Failed to prepare Tailwind config: %s", exc)
            return False

        args = self.command()
        try:
            returncode = self._runner(args)
        except FileNotFoundError:
            self.logger.error(
                "Unable to locate %r; install the Tailwind CLI or set compiler.command",
                args[0],
            )
            return False
        except OSError as exc:
            self.logger.error("Failed to run %s: %s", " ".join(args), exc)
            return False

        if returncode != 0:
            self.logger.error("Tailwind CLI exited with status %d", returncode)
            return False

        self._notify(self.output_path)
        return True

    def _notify(self, path: Path) -> None:
        for listener in list(self._listeners):
            try:
                listener(path)
            except Exception as exc:
                self.logger.warning("CSS change listener %r failed: %s", listener, exc)

    @staticmethod
    def _default_runner(args: Sequence[str]) -> int:
        completed = subprocess.run(list(args), check=False)
        return completed.returncode


__all__ = ["CONFIG_FILENAME", "TailwindCompiler"]
