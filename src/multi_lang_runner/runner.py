from __future__ import annotations

import logging

from .execution.engine import CommandRunner, ExecutionStrategy
from .execution.languages import LanguageRegistry, default_registry, normalize_language
from .execution.process_runner import ProcessRunner
from .execution.types import ExecutionRequest, ExecutionResult, RunnerResult
from .execution.workspace import Workspace
from .policy import RunnerPolicy

logger = logging.getLogger(__name__)

_ESCAPED_NEWLINE = "\\n"


def _resolve_policy(policy: RunnerPolicy | None, policy_file: str | None) -> RunnerPolicy:
    """Resolve the effective policy object for a run.

    Example:
        ```python
        policy = _resolve_policy(None, "/tmp/policy.toml")
        ```
    """
    if policy is not None and policy_file is not None:
        raise ValueError("Provide either 'policy' or 'policy_file', not both")
    if policy is None and policy_file is not None:
        return RunnerPolicy.from_file(policy_file)
    if policy is None:
        return RunnerPolicy()
    if policy.config_path is not None:
        return RunnerPolicy.from_file(policy.config_path)
    return policy


def unescape_newlines(code: str) -> str:
    """Turn literal backslash-n pairs into real newlines.

    Callers that JSON-escape source without decoding it send `\\n` as two
    characters; code without such pairs is returned unchanged.

    Example:
        ```python
        unescape_newlines("print(1)\\\\nprint(2)")  # "print(1)\\nprint(2)"
        ```
    """
    if _ESCAPED_NEWLINE not in code:
        return code
    return code.replace(_ESCAPED_NEWLINE, "\n")


def unsupported_language_message(language: str, registry: LanguageRegistry) -> str:
    """Render the message returned for an unknown language.

    Example:
        ```python
        unsupported_language_message("ruby", default_registry())
        ```
    """
    supported = ", ".join(registry.supported_language_ids())
    return f"Unsupported language: {language}. Supported languages are: {supported}"


def format_result(result: ExecutionResult, timeout_seconds: int) -> RunnerResult:
    """Render an execution outcome as the text handed back to the caller.

    Example:
        ```python
        format_result(ExecutionResult("hi\\n", 0, False), 15).text  # "hi\\n"
        ```
    """
    if result.preparation_error is not None:
        return RunnerResult(ok=False, text=result.preparation_error)
    if result.timed_out:
        return RunnerResult(
            ok=False,
            text=f"Execution timed out after {timeout_seconds} seconds",
            timed_out=True,
            exit_code=result.exit_code,
        )
    if result.exit_code != 0:
        return RunnerResult(
            ok=False,
            text=f"Execution failed with exit code {result.exit_code}:\n{result.merged_output}",
            exit_code=result.exit_code,
        )
    return RunnerResult(ok=True, text=result.merged_output, exit_code=0)


def _execute(
    request: ExecutionRequest,
    strategy: ExecutionStrategy,
    runner: CommandRunner,
    policy: RunnerPolicy,
) -> ExecutionResult:
    """Stage, prepare and run one request inside a scoped workspace.

    Example:
        ```python
        result = _execute(ExecutionRequest("python", "print(1)"), strategy, ProcessRunner(), RunnerPolicy())
        ```
    """
    with Workspace.stage(
        request,
        strategy,
        parent_dir=policy.workspace_dir,
        prefix=policy.workspace_prefix,
    ) as workspace:
        if strategy.needs_preparation():
            error = strategy.prepare(
                workspace.source_file,
                runner,
                policy.compile_timeout_seconds,
            )
            if error is not None:
                return ExecutionResult("", 0, False, preparation_error=error)

        argv = strategy.build_run_command(workspace.source_file)
        outcome = runner.run(argv, policy.timeout_seconds, cwd=workspace.root_dir)
        return ExecutionResult(
            merged_output=outcome.merged_output,
            exit_code=outcome.exit_code,
            timed_out=outcome.timed_out,
        )


def run_code(
    language: str,
    code: str,
    *,
    policy: RunnerPolicy | None = None,
    policy_file: str | None = None,
    registry: LanguageRegistry | None = None,
    runner: CommandRunner | None = None,
) -> RunnerResult:
    """Run `code` as `language` and return the formatted outcome with its status.

    Nothing propagates: bad policy arguments, unsupported languages,
    compiler diagnostics, non-zero exits, timeouts and unexpected errors
    all come back as a `RunnerResult` whose `text` describes them.

    Example:
        ```python
        from multi_lang_runner import run_code
        result = run_code("python", "print('hi')")
        ```
    """
    try:
        resolved_policy = _resolve_policy(policy, policy_file)
        resolved_registry = registry if registry is not None else default_registry()
        resolved_runner = runner if runner is not None else ProcessRunner()

        language = normalize_language(language)
        strategy = resolved_registry.resolve(language)
        if strategy is None:
            logger.info("Rejected unsupported language %r", language)
            return RunnerResult(
                ok=False,
                text=unsupported_language_message(language, resolved_registry),
            )

        request = ExecutionRequest(language=language, source_code=unescape_newlines(code))
        result = _execute(request, strategy, resolved_runner, resolved_policy)
        return format_result(result, resolved_policy.timeout_seconds)
    except Exception as exc:
        logger.exception("Unexpected failure executing %s code", language)
        return RunnerResult(ok=False, text=f"Error executing code: {exc}")


def execute_code(
    language: str,
    code: str,
    *,
    policy: RunnerPolicy | None = None,
    policy_file: str | None = None,
    registry: LanguageRegistry | None = None,
    runner: CommandRunner | None = None,
) -> str:
    """Run `code` as `language` and describe the outcome as text.

    Example:
        ```python
        from multi_lang_runner import execute_code
        execute_code("python", "print('hi')")  # "hi\\n"
        ```
    """
    return run_code(
        language,
        code,
        policy=policy,
        policy_file=policy_file,
        registry=registry,
        runner=runner,
    ).text
