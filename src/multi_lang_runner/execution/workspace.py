from __future__ import annotations

import logging
import re
import shutil
import tempfile
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .engine import ExecutionStrategy
from .types import ExecutionRequest

logger = logging.getLogger(__name__)

DEFAULT_TYPE_NAME = "Main"
_TYPE_MARKER = "public class "
_NAME_DELIMITERS = re.compile(r"[ {]")


def extract_type_name(source_code: str) -> str:
    """Return the first `public class <Name>` in the source, or `Main`.

    This is a line scan, not a parse: nested or unusually formatted
    declarations can yield the wrong name.

    Example:
        ```python
        extract_type_name("public class Foo {\\n}")  # "Foo"
        ```
    """
    for line in source_code.split("\n"):
        line = line.strip()
        if _TYPE_MARKER not in line:
            continue
        after_marker = line.split(_TYPE_MARKER, 1)[1].strip()
        name = _NAME_DELIMITERS.split(after_marker, 1)[0].strip()
        if name:
            return name
    return DEFAULT_TYPE_NAME


def source_filename(source_code: str, strategy: ExecutionStrategy) -> str:
    """Choose the staged filename for a request.

    Example:
        ```python
        source_filename("print(1)", python_strategy)  # "code_<uuid>.py"
        ```
    """
    if strategy.spec.names_file_after_type:
        return extract_type_name(source_code) + strategy.file_extension
    return f"code_{uuid.uuid4()}{strategy.file_extension}"


class Workspace:
    """One request's private directory and staged source file.

    Example:
        ```python
        with Workspace.stage(request, strategy) as ws:
            print(ws.source_file)
        ```
    """

    def __init__(self, root_dir: Path, source_file: Path, compiled_artifact: Path | None = None) -> None:
        """Wrap already-created workspace paths.

        Example:
            ```python
            ws = Workspace(Path("/tmp/code_exec_1"), Path("/tmp/code_exec_1/Main.java"))
            ```
        """
        self.root_dir = root_dir
        self.source_file = source_file
        self.compiled_artifact = compiled_artifact

    @classmethod
    @contextmanager
    def stage(
        cls,
        request: ExecutionRequest,
        strategy: ExecutionStrategy,
        *,
        parent_dir: str | None = None,
        prefix: str = "code_exec_",
    ) -> Iterator["Workspace"]:
        """Create a fresh directory, write the source, and always remove it on exit.

        Example:
            ```python
            with Workspace.stage(ExecutionRequest("java", code), strategy) as ws:
                strategy.prepare(ws.source_file, runner, 30)
            ```
        """
        root_dir = Path(tempfile.mkdtemp(prefix=prefix, dir=parent_dir)).resolve()
        workspace = cls(root_dir, root_dir)
        try:
            source_file = root_dir / source_filename(request.source_code, strategy)
            if source_file.parent != root_dir:
                raise ValueError(f"Invalid source filename: {source_file.name}")
            source_file.write_text(request.source_code, encoding="utf-8")
            workspace.source_file = source_file
            workspace.compiled_artifact = strategy.compiled_artifact(source_file)
            logger.debug("Staged %s source at %s", request.language, source_file)
            yield workspace
        finally:
            workspace.dispose()

    def dispose(self) -> None:
        """Recursively delete the workspace; missing files are not an error.

        Example:
            ```python
            ws.dispose()
            ```
        """
        shutil.rmtree(self.root_dir, ignore_errors=True)
        logger.debug("Removed workspace %s", self.root_dir)
