from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .types import LanguageSpec, ProcessResult


class CommandRunner(Protocol):
    def run(
        self,
        argv: list[str],
        timeout_seconds: int,
        cwd: Path | None = None,
    ) -> ProcessResult:
        """Run one external command and return its merged output and status.

        Example:
            ```python
            result = runner.run(["g++", "-o", "/tmp/x/a", "/tmp/x/a.cpp"], timeout_seconds=30)
            ```
        """
        ...


class ExecutionStrategy(Protocol):
    @property
    def spec(self) -> LanguageSpec:
        """Return the static description of the language.

        Example:
            ```python
            strategy.spec.id  # "java"
            ```
        """
        ...

    @property
    def file_extension(self) -> str:
        """Return the extension (with leading dot) for staged source files.

        Example:
            ```python
            ext = strategy.file_extension
            ```
        """
        ...

    def needs_preparation(self) -> bool:
        """Return whether a compile step must run before the program.

        Example:
            ```python
            if strategy.needs_preparation(): ...
            ```
        """
        ...

    def prepare(
        self,
        source_file: Path,
        runner: CommandRunner,
        timeout_seconds: int,
    ) -> str | None:
        """Compile the staged source; return diagnostic text on failure, else None.

        Example:
            ```python
            error = strategy.prepare(source_file, ProcessRunner(), timeout_seconds=30)
            ```
        """
        ...

    def build_run_command(self, source_file: Path) -> list[str]:
        """Return the argv that runs the staged (and prepared) program.

        Example:
            ```python
            argv = strategy.build_run_command(Path("/tmp/x/code_1.py"))
            ```
        """
        ...

    def compiled_artifact(self, source_file: Path) -> Path | None:
        """Return where preparation leaves its output, if it produces one.

        Example:
            ```python
            binary = strategy.compiled_artifact(Path("/tmp/x/code_1.cpp"))
            ```
        """
        ...

    def required_executables(self) -> tuple[str, ...]:
        """Return the programs that must be on PATH for this language.

        Example:
            ```python
            strategy.required_executables()  # ("javac", "java")
            ```
        """
        ...
