"""Subprocess runner for script nodes.

The node's resolved inputs are written to the script's stdin as one JSON
object; whatever the script prints on stdout becomes the node output, parsed
as JSON when it is valid JSON.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import shutil
import sys
from typing import Any

from inspireflow.config import ScriptConfig
from inspireflow.core.errors import ScriptExecutionError, UnsupportedTypeError
from inspireflow.engine.dispatcher import ScriptRequest
from inspireflow.utils.logging import get_logger

log = get_logger(__name__)

_PYTHON = frozenset({"python", "python3", "py"})
_JAVASCRIPT = frozenset({"javascript", "js", "node"})
_STDERR_TAIL = 500


def parse_script_output(stdout: str) -> Any:
    """Stripped stdout; decoded JSON when it parses."""
    text = stdout.strip()
    if not text:
        return ""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


class ScriptRunner:
    """Runs python or javascript code with a timeout and an output cap."""

    def __init__(self, config: ScriptConfig | None = None) -> None:
        self._config = config or ScriptConfig()

    def _command(self, language: str, code: str) -> list[str]:
        if language in _PYTHON:
            return [sys.executable, "-c", code]
        if language in _JAVASCRIPT:
            node = shutil.which("node")
            if node is None:
                raise ScriptExecutionError(
                    "JavaScript scripts need Node.js, but 'node' is not on PATH",
                    error_code="SCRIPT_INTERPRETER_MISSING",
                )
            return [node, "-e", code]
        raise UnsupportedTypeError(
            f"Unsupported script language: '{language}'",
            details={"language": language},
        )

    def _decode(self, data: bytes) -> tuple[str, bool]:
        limit = self._config.max_output_bytes
        truncated = len(data) > limit
        return data[:limit].decode("utf-8", errors="replace"), truncated

    async def run(self, request: ScriptRequest) -> Any:
        """Execute ``request`` and return its parsed stdout.

        Raises:
            UnsupportedTypeError: Unknown language.
            ScriptExecutionError: Non-zero exit, timeout or missing interpreter.
        """
        language = (request.language or "python").strip().lower()
        argv = self._command(language, request.code)
        timeout = request.timeout_seconds or self._config.timeout_seconds
        payload = json.dumps(request.inputs, ensure_ascii=False, default=str).encode("utf-8")

        log.info("script_exec_start", language=language, timeout=timeout, inputs=sorted(request.inputs))

        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(payload),
                timeout=float(timeout),
            )
        except TimeoutError:
            proc.kill()
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(proc.wait(), timeout=5.0)
            log.warning("script_exec_timeout", language=language, timeout=timeout)
            raise ScriptExecutionError(
                f"Script timed out after {timeout}s",
                error_code="SCRIPT_TIMEOUT",
                details={"timeout_seconds": timeout},
            ) from None

        stdout, truncated = self._decode(stdout_bytes)
        stderr, _ = self._decode(stderr_bytes)

        log.info(
            "script_exec_done",
            language=language,
            exit_code=proc.returncode,
            stdout_len=len(stdout),
            truncated=truncated,
        )

        if proc.returncode != 0:
            tail = stderr.strip()[-_STDERR_TAIL:]
            raise ScriptExecutionError(
                f"Script exited with code {proc.returncode}: {tail or 'no error output'}",
                exit_code=proc.returncode,
                details={"stderr": tail},
            )
        if truncated:
            # A cut JSON document would not parse; keep the raw text
            return stdout.strip()
        return parse_script_output(stdout)
