from __future__ import annotations

import shutil
from dataclasses import dataclass

from .engine import ExecutionStrategy
from .languages import LanguageRegistry, default_registry


@dataclass(frozen=True, slots=True)
class ToolchainStatus:
    """Availability of the external programs one language needs.

    Example:
        ```python
        status = ToolchainStatus("cpp", ("g++",), ())
        ```
    """

    language: str
    required: tuple[str, ...]
    missing: tuple[str, ...]

    @property
    def available(self) -> bool:
        """Return whether every required program was found on PATH.

        Example:
            ```python
            ToolchainStatus("cpp", ("g++",), ()).available  # True
            ```
        """
        return not self.missing


def required_executables(language: str, registry: LanguageRegistry | None = None) -> tuple[str, ...]:
    """Return the programs a language's strategy invokes.

    Example:
        ```python
        required_executables("java")  # ("javac", "java")
        ```
    """
    strategy = (registry or default_registry()).resolve(language)
    if strategy is None:
        raise ValueError(f"Unsupported language: {language}")
    return strategy.required_executables()


def _status_for(strategy: ExecutionStrategy) -> ToolchainStatus:
    """Probe PATH for one strategy's programs.

    Example:
        ```python
        status = _status_for(default_registry().resolve("python"))
        ```
    """
    required = strategy.required_executables()
    missing = tuple(name for name in required if shutil.which(name) is None)
    return ToolchainStatus(strategy.spec.id, required, missing)


def toolchain_status(registry: LanguageRegistry | None = None) -> list[ToolchainStatus]:
    """Report toolchain availability for every registered language.

    Example:
        ```python
        for status in toolchain_status():
            print(status.language, status.available)
        ```
    """
    return [_status_for(strategy) for strategy in (registry or default_registry()).strategies()]
