from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import Callable

import pytest

from multi_lang_runner import LanguageRegistry, RunnerPolicy, build_registry
from multi_lang_runner.execution.types import ProcessResult


class FakeRunner:
    """Scripted stand-in for ProcessRunner that records every command."""

    def __init__(self, *results: ProcessResult, on_run: Callable[[list[str]], None] | None = None) -> None:
        self.results = list(results)
        self.calls: list[tuple[list[str], int, Path | None]] = []
        self.on_run = on_run
        self.seen_files: list[list[Path]] = []

    def run(self, argv: list[str], timeout_seconds: int, cwd: Path | None = None) -> ProcessResult:
        self.calls.append((list(argv), timeout_seconds, cwd))
        if cwd is not None:
            self.seen_files.append(sorted(cwd.iterdir()))
        if self.on_run is not None:
            self.on_run(list(argv))
        if self.results:
            return self.results.pop(0)
        return ProcessResult(merged_output="", exit_code=0, timed_out=False)


@pytest.fixture
def registry() -> LanguageRegistry:
    return build_registry(python_command=sys.executable)


@pytest.fixture
def policy(tmp_path: Path) -> RunnerPolicy:
    workspaces = tmp_path / "workspaces"
    workspaces.mkdir()
    return RunnerPolicy(timeout_seconds=5, compile_timeout_seconds=30, workspace_dir=str(workspaces))


def leftover_workspaces(policy: RunnerPolicy) -> list[Path]:
    assert policy.workspace_dir is not None
    return sorted(Path(policy.workspace_dir).iterdir())


def requires(*programs: str) -> pytest.MarkDecorator:
    missing = [name for name in programs if shutil.which(name) is None]
    return pytest.mark.skipif(bool(missing), reason=f"missing on PATH: {', '.join(missing)}")
