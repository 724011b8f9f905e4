from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any


def _default_policy_path() -> Path:
    """Return bundled default policy TOML path.

    Example:
        ```python
        path = _default_policy_path()
        ```
    """
    return Path(__file__).with_name("default_policy.toml")


def _read_policy_toml(path: Path) -> dict[str, Any]:
    """Read policy TOML and return the policy table.

    Example:
        ```python
        raw = _read_policy_toml(Path("/tmp/policy.toml"))
        ```
    """
    if not path.exists():
        return {
            "timeout_seconds": 15,
            "compile_timeout_seconds": 30,
            "workspace_prefix": "code_exec_",
        }
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    policy_obj = raw.get("policy", raw)
    if not isinstance(policy_obj, dict):
        raise ValueError("Policy config must be a TOML table")
    return policy_obj


def _optional_str(value: Any, field_name: str) -> str | None:
    """Validate an optional string policy field.

    Example:
        ```python
        workspace_dir = _optional_str("/var/tmp", "workspace_dir")
        ```
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'{field_name}' must be a string")
    return value.strip() or None


_DEFAULT_POLICY_RAW = _read_policy_toml(_default_policy_path())
DEFAULT_TIMEOUT_SECONDS = int(_DEFAULT_POLICY_RAW.get("timeout_seconds", 15))
DEFAULT_COMPILE_TIMEOUT_SECONDS = int(_DEFAULT_POLICY_RAW.get("compile_timeout_seconds", 30))
DEFAULT_WORKSPACE_PREFIX = str(_DEFAULT_POLICY_RAW.get("workspace_prefix", "code_exec_"))
DEFAULT_WORKSPACE_DIR = _optional_str(_DEFAULT_POLICY_RAW.get("workspace_dir"), "workspace_dir")


@dataclass(slots=True)
class RunnerPolicy:
    """Execution limits and workspace placement for `execute_code`.

    Example:
        ```python
        policy = RunnerPolicy(timeout_seconds=5, compile_timeout_seconds=20)
        ```
    """

    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    compile_timeout_seconds: int = DEFAULT_COMPILE_TIMEOUT_SECONDS
    workspace_dir: str | None = DEFAULT_WORKSPACE_DIR
    workspace_prefix: str = DEFAULT_WORKSPACE_PREFIX
    config_path: str | None = None

    def __post_init__(self) -> None:
        """Validate limits after dataclass initialization.

        Example:
            ```python
            RunnerPolicy(timeout_seconds=15)
            ```
        """
        for name in ("timeout_seconds", "compile_timeout_seconds"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"'{name}' must be a positive integer")

    @classmethod
    def from_file(cls, config_path: str) -> "RunnerPolicy":
        """Create a policy instance from a TOML file.

        Example:
            ```python
            policy = RunnerPolicy.from_file("/tmp/policy.toml")
            ```
        """
        raw = _read_policy_toml(Path(config_path))
        return cls(
            timeout_seconds=int(raw.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
            compile_timeout_seconds=int(
                raw.get("compile_timeout_seconds", DEFAULT_COMPILE_TIMEOUT_SECONDS)
            ),
            workspace_dir=_optional_str(raw.get("workspace_dir"), "workspace_dir"),
            workspace_prefix=str(raw.get("workspace_prefix", DEFAULT_WORKSPACE_PREFIX)),
            config_path=config_path,
        )
