from __future__ import annotations

import functools
import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping

from .engine import CommandRunner, ExecutionStrategy
from .types import LanguageSpec

logger = logging.getLogger(__name__)

COMPILATION_FAILED_PREFIX = "Compilation failed: "
TS_NODE_PATH_ENV = "TS_NODE_PATH"


def normalize_language(language: str) -> str:
    """Normalize a language identifier for registry lookup.

    Example:
        ```python
        normalize_language("  Python ")  # "python"
        ```
    """
    return language.strip().lower()


def _compile(
    argv: list[str],
    runner: CommandRunner,
    timeout_seconds: int,
    cwd: Path,
) -> str | None:
    """Run a compiler and turn a failed or hung build into diagnostic text.

    Example:
        ```python
        error = _compile(["javac", "/tmp/x/Main.java"], ProcessRunner(), 30, Path("/tmp/x"))
        ```
    """
    result = runner.run(argv, timeout_seconds, cwd=cwd)
    if result.timed_out:
        logger.info("Compiler %s exceeded %ss", argv[0], timeout_seconds)
        return (
            f"{COMPILATION_FAILED_PREFIX}compiler did not finish within "
            f"{timeout_seconds} seconds\n{result.merged_output}"
        )
    if result.exit_code != 0:
        logger.info("Compiler %s exited with code %s", argv[0], result.exit_code)
        return COMPILATION_FAILED_PREFIX + result.merged_output
    return None


@dataclass(frozen=True, slots=True)
class InterpretedStrategy:
    """Run a script directly with its interpreter.

    Example:
        ```python
        strategy = InterpretedStrategy(LanguageSpec("python", "python3", ".py", False))
        ```
    """

    spec: LanguageSpec

    @property
    def file_extension(self) -> str:
        """Return the staged source extension.

        Example:
            ```python
            InterpretedStrategy(spec).file_extension  # ".py"
            ```
        """
        return self.spec.file_extension

    def needs_preparation(self) -> bool:
        """Interpreted languages run without a compile step.

        Example:
            ```python
            InterpretedStrategy(spec).needs_preparation()  # False
            ```
        """
        return False

    def prepare(self, source_file: Path, runner: CommandRunner, timeout_seconds: int) -> str | None:
        """No-op preparation.

        Example:
            ```python
            InterpretedStrategy(spec).prepare(path, runner, 30)  # None
            ```
        """
        return None

    def build_run_command(self, source_file: Path) -> list[str]:
        """Return `<interpreter> <file>`.

        Example:
            ```python
            InterpretedStrategy(spec).build_run_command(Path("/tmp/x/code_1.py"))
            ```
        """
        if not self.spec.interpreter_command:
            raise ValueError(f"No interpreter configured for '{self.spec.id}'")
        return [self.spec.interpreter_command, str(source_file)]

    def compiled_artifact(self, source_file: Path) -> Path | None:
        """Interpreted languages leave no build output.

        Example:
            ```python
            InterpretedStrategy(spec).compiled_artifact(path)  # None
            ```
        """
        return None

    def required_executables(self) -> tuple[str, ...]:
        """Return the programs this strategy invokes.

        Example:
            ```python
            InterpretedStrategy(spec).required_executables()  # ("python3",)
            ```
        """
        return (self.spec.interpreter_command,) if self.spec.interpreter_command else ()


@dataclass(frozen=True, slots=True)
class ToolStrategy:
    """Run a source file through an external tool, e.g. ts-node for TypeScript.

    The tool path comes from an environment override when set, otherwise
    from a package-runner invocation such as `npx ts-node`.

    Example:
        ```python
        strategy = ToolStrategy(spec, env_var="TS_NODE_PATH", fallback=("npx", "ts-node"))
        ```
    """

    spec: LanguageSpec
    env_var: str
    fallback: tuple[str, ...]

    @property
    def file_extension(self) -> str:
        """Return the staged source extension.

        Example:
            ```python
            ToolStrategy(spec, "TS_NODE_PATH", ("npx", "ts-node")).file_extension  # ".ts"
            ```
        """
        return self.spec.file_extension

    def needs_preparation(self) -> bool:
        """The tool transpiles on the fly, so there is no separate step.

        Example:
            ```python
            strategy.needs_preparation()  # False
            ```
        """
        return False

    def prepare(self, source_file: Path, runner: CommandRunner, timeout_seconds: int) -> str | None:
        """No-op preparation.

        Example:
            ```python
            strategy.prepare(path, runner, 30)  # None
            ```
        """
        return None

    def _tool_command(self) -> list[str]:
        """Return the tool argv prefix, honoring the environment override.

        Example:
            ```python
            strategy._tool_command()  # ["npx", "ts-node"]
            ```
        """
        override = os.environ.get(self.env_var, "")
        if override:
            return [override]
        return list(self.fallback)

    def build_run_command(self, source_file: Path) -> list[str]:
        """Return `<tool> <file>`.

        Example:
            ```python
            strategy.build_run_command(Path("/tmp/x/code_1.ts"))
            ```
        """
        return [*self._tool_command(), str(source_file)]

    def compiled_artifact(self, source_file: Path) -> Path | None:
        """Transpilation happens in memory; nothing is left on disk.

        Example:
            ```python
            strategy.compiled_artifact(path)  # None
            ```
        """
        return None

    def required_executables(self) -> tuple[str, ...]:
        """Return the program this strategy invokes.

        Example:
            ```python
            strategy.required_executables()  # ("npx",)
            ```
        """
        return (self._tool_command()[0],)


@dataclass(frozen=True, slots=True)
class BytecodeStrategy:
    """Compile a class-oriented source to bytecode, then run the class.

    The staged file is named after the declared public type, so the type
    name doubles as the entry point.

    Example:
        ```python
        strategy = BytecodeStrategy(spec, compiler="javac", runtime="java")
        ```
    """

    spec: LanguageSpec
    compiler: str = "javac"
    runtime: str = "java"

    @property
    def file_extension(self) -> str:
        """Return the staged source extension.

        Example:
            ```python
            BytecodeStrategy(spec).file_extension  # ".java"
            ```
        """
        return self.spec.file_extension

    def needs_preparation(self) -> bool:
        """Bytecode must be compiled before it can run.

        Example:
            ```python
            BytecodeStrategy(spec).needs_preparation()  # True
            ```
        """
        return True

    def prepare(self, source_file: Path, runner: CommandRunner, timeout_seconds: int) -> str | None:
        """Compile the source next to itself; return diagnostics on failure.

        Example:
            ```python
            error = BytecodeStrategy(spec).prepare(Path("/tmp/x/Main.java"), ProcessRunner(), 30)
            ```
        """
        return _compile(
            [self.compiler, str(source_file)],
            runner,
            timeout_seconds,
            cwd=source_file.parent,
        )

    def build_run_command(self, source_file: Path) -> list[str]:
        """Return `<runtime> -cp <workspace> <TypeName>`.

        Example:
            ```python
            BytecodeStrategy(spec).build_run_command(Path("/tmp/x/Main.java"))
            ```
        """
        return [self.runtime, "-cp", str(source_file.parent), source_file.stem]

    def compiled_artifact(self, source_file: Path) -> Path | None:
        """Return the class file produced for the entry type.

        Example:
            ```python
            BytecodeStrategy(spec).compiled_artifact(Path("/tmp/x/Main.java"))  # /tmp/x/Main.class
            ```
        """
        return source_file.with_suffix(".class")

    def required_executables(self) -> tuple[str, ...]:
        """Return the compiler and runtime.

        Example:
            ```python
            BytecodeStrategy(spec).required_executables()  # ("javac", "java")
            ```
        """
        return (self.compiler, self.runtime)


@dataclass(frozen=True, slots=True)
class NativeStrategy:
    """Compile a source file to a native binary inside the workspace and run it.

    Example:
        ```python
        strategy = NativeStrategy(spec, compiler="g++")
        ```
    """

    spec: LanguageSpec
    compiler: str = "g++"

    @property
    def file_extension(self) -> str:
        """Return the staged source extension.

        Example:
            ```python
            NativeStrategy(spec).file_extension  # ".cpp"
            ```
        """
        return self.spec.file_extension

    def needs_preparation(self) -> bool:
        """Native code must be compiled before it can run.

        Example:
            ```python
            NativeStrategy(spec).needs_preparation()  # True
            ```
        """
        return True

    def prepare(self, source_file: Path, runner: CommandRunner, timeout_seconds: int) -> str | None:
        """Compile to a binary beside the source and mark it executable.

        Example:
            ```python
            error = NativeStrategy(spec).prepare(Path("/tmp/x/code_1.cpp"), ProcessRunner(), 30)
            ```
        """
        binary = self.compiled_artifact(source_file)
        error = _compile(
            [self.compiler, "-o", str(binary), str(source_file)],
            runner,
            timeout_seconds,
            cwd=source_file.parent,
        )
        if error is not None:
            return error
        mode = binary.stat().st_mode
        binary.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return None

    def build_run_command(self, source_file: Path) -> list[str]:
        """Return the path of the produced binary.

        Example:
            ```python
            NativeStrategy(spec).build_run_command(Path("/tmp/x/code_1.cpp"))  # ["/tmp/x/code_1"]
            ```
        """
        binary = self.compiled_artifact(source_file)
        return [str(binary)]

    def compiled_artifact(self, source_file: Path) -> Path:
        """Return the binary path: the source path without its extension.

        Example:
            ```python
            NativeStrategy(spec).compiled_artifact(Path("/tmp/x/code_1.cpp"))  # /tmp/x/code_1
            ```
        """
        return source_file.with_suffix("")

    def required_executables(self) -> tuple[str, ...]:
        """Return the compiler.

        Example:
            ```python
            NativeStrategy(spec).required_executables()  # ("g++",)
            ```
        """
        return (self.compiler,)


class LanguageRegistry:
    """Read-only table from language identifier to execution strategy.

    Built once; there is no way to add or remove entries afterwards, so
    concurrent lookups need no locking.

    Example:
        ```python
        registry = LanguageRegistry([InterpretedStrategy(spec)])
        ```
    """

    __slots__ = ("_table",)

    def __init__(self, strategies: Iterable[ExecutionStrategy]) -> None:
        """Index strategies by their normalized language identifier.

        Example:
            ```python
            registry = LanguageRegistry(strategies)
            ```
        """
        table: dict[str, ExecutionStrategy] = {}
        for strategy in strategies:
            key = normalize_language(strategy.spec.id)
            if key in table:
                raise ValueError(f"Duplicate language id: {key}")
            table[key] = strategy
        self._table: Mapping[str, ExecutionStrategy] = MappingProxyType(table)

    def resolve(self, language_id: str) -> ExecutionStrategy | None:
        """Return the strategy for `language_id`, or None when unsupported.

        Example:
            ```python
            strategy = registry.resolve(" Java ")
            ```
        """
        return self._table.get(normalize_language(language_id))

    def supported_language_ids(self) -> tuple[str, ...]:
        """Return the registered identifiers in registration order.

        Example:
            ```python
            registry.supported_language_ids()  # ("python", "javascript", ...)
            ```
        """
        return tuple(self._table)

    def strategies(self) -> tuple[ExecutionStrategy, ...]:
        """Return the registered strategies in registration order.

        Example:
            ```python
            for strategy in registry.strategies(): ...
            ```
        """
        return tuple(self._table.values())


def build_registry(*, python_command: str = "python3", node_command: str = "node") -> LanguageRegistry:
    """Build the registry of every supported language.

    Example:
        ```python
        registry = build_registry(python_command=sys.executable)
        ```
    """
    return LanguageRegistry(
        [
            InterpretedStrategy(LanguageSpec("python", python_command, ".py", False)),
            InterpretedStrategy(LanguageSpec("javascript", node_command, ".js", False)),
            ToolStrategy(
                LanguageSpec("typescript", None, ".ts", True),
                env_var=TS_NODE_PATH_ENV,
                fallback=("npx", "ts-node"),
            ),
            BytecodeStrategy(
                LanguageSpec("java", None, ".java", True, names_file_after_type=True),
            ),
            NativeStrategy(LanguageSpec("cpp", None, ".cpp", True)),
        ]
    )


@functools.lru_cache(maxsize=None)
def default_registry() -> LanguageRegistry:
    """Return the process-wide registry, built on first use.

    Example:
        ```python
        strategy = default_registry().resolve("python")
        ```
    """
    return build_registry()
