# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Remote code runner client.

Student code is never executed in-process. It is sent to a glot.io
compatible runner:

    POST {GLOT_API_URL}/{language}/latest
    Authorization: Token {GLOT_API_KEY}
    {"files": [{"name": "main.js", "content": "..."}]}

The runner answers with {"stdout", "stderr", "error"}. A run succeeds when
the runner reports no error and no assertion failed. Hidden tests report
failures with console.assert (JavaScript) or assert (Python, Java), so an
assertion message in either stream marks the run as failed even if the
process exited normally.

Example:
    >>> client = ExecutionClient()
    >>> result = await client.execute("console.log(1 + 1)", "javascript")
    >>> result.success, result.output
    (True, '2')
"""

import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

from src.core.config.settings import ExecutionSettings, get_settings

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES: dict[str, str] = {
    "javascript": "main.js",
    "python": "main.py",
    "java": "Main.java",
}

_ASSERTION_MARKERS = ("assertion failed", "assertionerror")
_ERROR_LINE = re.compile(r"[\w.$]*(?:Error|Exception)\b")


class UnsupportedLanguageError(ValueError):
    """Raised when code is submitted in a language the runner does not support."""

    def __init__(self, language: str) -> None:
        super().__init__(f"Unsupported language: {language}")
        self.language = language


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of a remote run.

    Attributes:
        success: True when the program ran and no assertion failed.
        output: Combined program output (stdout, then stderr).
        error: Runner or transport error message, if any.
    """

    success: bool
    output: str = ""
    error: str | None = None


def has_assertion_failure(output: str) -> bool:
    """Check whether program output contains a failed assertion."""
    lowered = output.lower()
    return any(marker in lowered for marker in _ASSERTION_MARKERS)


def extract_failure_message(output: str) -> str | None:
    """Return the first assertion message in the output, prefix removed.

    Handles "Assertion failed: msg" (console.assert) and
    "AssertionError: msg" (Python, Node's assert module).
    """
    for line in output.splitlines():
        stripped = line.strip()
        lowered = stripped.lower()
        for marker in ("assertion failed:", "assertionerror:"):
            index = lowered.find(marker)
            if index != -1:
                message = stripped[index + len(marker):].strip()
                return message or None
    return None


def extract_error_message(result: ExecutionResult) -> str | None:
    """Describe why a run crashed, or None if the runner reported no error.

    Prefers the line naming the exception (ReferenceError, NameError,
    java.lang.RuntimeException), then the last non-empty output line, then
    the runner's own error string.
    """
    if result.error is None:
        return None
    lines = [line.strip() for line in result.output.splitlines() if line.strip()]
    for line in lines:
        if _ERROR_LINE.search(line):
            return line
    if lines:
        return lines[-1]
    return result.error


class ExecutionClient:
    """Async client for the remote code runner.

    An httpx.AsyncClient may be injected; otherwise one is created per call.
    """

    def __init__(
        self,
        settings: ExecutionSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings().execution
        self._http_client = http_client

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        api_key = self._settings.api_key.get_secret_value()
        if api_key:
            headers["Authorization"] = f"Token {api_key}"
        return headers

    async def _post(self, url: str, payload: dict[str, Any]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(url, json=payload, headers=self._headers())
        async with httpx.AsyncClient(timeout=self._settings.timeout) as client:
            return await client.post(url, json=payload, headers=self._headers())

    async def execute(self, code: str, language: str) -> ExecutionResult:
        """Run code remotely.

        Transport failures, timeouts and non-2xx responses are reported as
        an unsuccessful result with error set; they are not raised.

        Raises:
            UnsupportedLanguageError: If the language is not supported.
        """
        language = language.lower()
        filename = SUPPORTED_LANGUAGES.get(language)
        if filename is None:
            raise UnsupportedLanguageError(language)

        url = f"{self._settings.api_url.rstrip('/')}/{language}/latest"
        payload = {"files": [{"name": filename, "content": code}]}

        try:
            response = await self._post(url, payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Code runner returned %d for %s", e.response.status_code, language
            )
            return ExecutionResult(
                success=False,
                error=f"Code runner returned status {e.response.status_code}",
            )
        except httpx.RequestError as e:
            logger.error("Code runner unreachable: %s", e)
            return ExecutionResult(success=False, error=f"Code runner unavailable: {e}")
        except ValueError as e:
            logger.error("Code runner returned invalid JSON: %s", e)
            return ExecutionResult(success=False, error="Code runner returned an invalid response")

        if not isinstance(data, dict):
            logger.error("Code runner returned unexpected payload type %s", type(data).__name__)
            return ExecutionResult(success=False, error="Code runner returned an invalid response")

        stdout = (data.get("stdout") or "").strip()
        stderr = (data.get("stderr") or "").strip()
        error = (data.get("error") or "").strip() or None
        output = "\n".join(part for part in (stdout, stderr) if part)

        success = error is None and not has_assertion_failure(output)

        logger.debug("Executed %s code: success=%s", language, success)

        return ExecutionResult(
            success=success,
            output=output if output or error is None else error,
            error=error,
        )
