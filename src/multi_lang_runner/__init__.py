from .execution.languages import LanguageRegistry, build_registry, default_registry
from .execution.process_runner import ProcessRunner
from .execution.types import RunnerResult
from .log import configure_logging
from .policy import RunnerPolicy
from .runner import execute_code, run_code

__all__ = [
    "LanguageRegistry",
    "ProcessRunner",
    "RunnerPolicy",
    "RunnerResult",
    "build_registry",
    "configure_logging",
    "default_registry",
    "execute_code",
    "run_code",
]
