from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from io import BufferedReader
from pathlib import Path
from typing import Sequence

from .types import ProcessResult

logger = logging.getLogger(__name__)

_READ_CHUNK_BYTES = 4096
_POSIX = os.name == "posix"
_REAP_GRACE_SECONDS = 1.0


def _drain(stream: BufferedReader, chunks: list[bytes]) -> None:
    """Read a pipe to EOF, appending raw chunks as they arrive.

    Example:
        ```python
        reader = threading.Thread(target=_drain, args=(proc.stdout, chunks), daemon=True)
        ```
    """
    try:
        while True:
            data = stream.read1(_READ_CHUNK_BYTES)
            if not data:
                break
            chunks.append(data)
    except (OSError, ValueError):
        # Pipe closed underneath us after a forced kill.
        pass
    finally:
        stream.close()


def _kill(process: subprocess.Popen[bytes]) -> None:
    """Forcibly terminate a child and, on POSIX, its whole process group.

    Example:
        ```python
        _kill(proc)
        ```
    """
    if _POSIX:
        try:
            os.killpg(process.pid, signal.SIGKILL)
            return
        except (ProcessLookupError, PermissionError):
            pass
    try:
        process.kill()
    except ProcessLookupError:
        pass


class ProcessRunner:
    """Run external commands with merged output and a wall-clock timeout.

    Output is drained by a reader thread while the caller waits on the
    process, so children that write more than a pipe buffer never stall.

    Example:
        ```python
        result = ProcessRunner().run(["python3", "-c", "print(1)"], timeout_seconds=5)
        ```
    """

    def run(
        self,
        argv: Sequence[str],
        timeout_seconds: int,
        cwd: Path | None = None,
    ) -> ProcessResult:
        """Start `argv`, wait up to `timeout_seconds`, and report its outcome.

        Example:
            ```python
            result = runner.run(["node", "/tmp/x/code.js"], timeout_seconds=15)
            ```
        """
        if not argv:
            raise ValueError("Command must contain at least one argument")

        logger.debug("Starting process: %s", list(argv))
        process = subprocess.Popen(
            list(argv),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            cwd=str(cwd) if cwd is not None else None,
            start_new_session=_POSIX,
        )
        if process.stdout is None:
            raise RuntimeError("Process output pipe was not created")
        chunks: list[bytes] = []
        reader = threading.Thread(target=_drain, args=(process.stdout, chunks), daemon=True)
        reader.start()

        deadline = time.monotonic() + timeout_seconds
        exit_code: int | None = None
        timed_out = False
        try:
            exit_code = process.wait(timeout=timeout_seconds)
        except subprocess.TimeoutExpired:
            timed_out = True
            logger.warning(
                "Process %s exceeded %ss; killing it", process.pid, timeout_seconds
            )
        finally:
            # Background children share the group and the output pipe; none may outlive the call.
            _kill(process)
            if exit_code is None:
                exit_code = process.wait()
            reader.join(timeout=max(_REAP_GRACE_SECONDS, deadline - time.monotonic()))

        logger.debug("Process %s exited with code %s", process.pid, exit_code)
        return ProcessResult(
            merged_output=_decode(chunks),
            exit_code=exit_code,
            timed_out=timed_out,
        )


def _decode(chunks: list[bytes]) -> str:
    """Join raw output chunks into text, replacing undecodable bytes.

    Example:
        ```python
        text = _decode([b"hello ", b"world\\n"])
        ```
    """
    return b"".join(chunks).decode("utf-8", errors="replace")
