from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LanguageSpec:
    """Static description of one supported language.

    Example:
        ```python
        spec = LanguageSpec("python", "python3", ".py", False)
        ```
    """

    id: str
    interpreter_command: str | None
    file_extension: str
    requires_compilation: bool
    names_file_after_type: bool = False


@dataclass(frozen=True, slots=True)
class ExecutionRequest:
    """One `execute_code` invocation after input normalization.

    Example:
        ```python
        req = ExecutionRequest(language="python", source_code="print('hi')")
        ```
    """

    language: str
    source_code: str


@dataclass(slots=True)
class ProcessResult:
    """Outcome of one external process run.

    Example:
        ```python
        out = ProcessResult(merged_output="hi\\n", exit_code=0, timed_out=False)
        ```
    """

    merged_output: str
    exit_code: int
    timed_out: bool


@dataclass(slots=True)
class ExecutionResult:
    """Outcome of a full prepare-then-run cycle, before formatting.

    Example:
        ```python
        res = ExecutionResult(merged_output="", exit_code=0, timed_out=False, preparation_error="Compilation failed: ...")
        ```
    """

    merged_output: str
    exit_code: int
    timed_out: bool
    preparation_error: str | None = None


@dataclass(slots=True)
class RunnerResult:
    """Formatted outcome returned by `run_code`.

    `text` is exactly what `execute_code` returns; `ok` is True only when
    the program ran to a zero exit and `text` is its own output.

    Example:
        ```python
        result = RunnerResult(ok=True, text="hi\\n", exit_code=0)
        ```
    """

    ok: bool
    text: str
    timed_out: bool = False
    exit_code: int | None = None
