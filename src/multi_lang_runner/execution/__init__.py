from .engine import CommandRunner, ExecutionStrategy
from .languages import LanguageRegistry, build_registry, default_registry
from .process_runner import ProcessRunner
from .types import ExecutionRequest, ExecutionResult, LanguageSpec, ProcessResult
from .workspace import Workspace

__all__ = [
    "CommandRunner",
    "ExecutionRequest",
    "ExecutionResult",
    "ExecutionStrategy",
    "LanguageRegistry",
    "LanguageSpec",
    "ProcessResult",
    "ProcessRunner",
    "Workspace",
    "build_registry",
    "default_registry",
]
