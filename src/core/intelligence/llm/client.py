# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""LLM client using LiteLLM for multi-provider support.

The model is selected with LLM_MODEL in LiteLLM format (for example
"gemini/gemini-1.5-flash-latest" or "ollama/qwen2.5:7b"). API keys and
endpoints are passed directly to acompletion() rather than through
provider-specific environment variables.

Example:
    >>> from src.core.intelligence.llm import LLMClient
    >>> client = LLMClient()
    >>> response = await client.complete("Explain closures in JavaScript")
    >>> print(response.content)
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

import litellm
from litellm import acompletion

from src.core.config.settings import LLMSettings, get_settings

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


@dataclass
class LLMResponse:
    """Response from an LLM completion.

    Attributes:
        content: The generated text content.
        model: The model that generated the response.
        tokens_input: Number of input tokens used.
        tokens_output: Number of output tokens generated.
        finish_reason: Why generation stopped (stop, length, etc.).
        raw_response: Original response object from LiteLLM.
    """

    content: str
    model: str
    tokens_input: int = 0
    tokens_output: int = 0
    finish_reason: str = "stop"
    raw_response: Optional[object] = field(default=None, repr=False)

    @property
    def total_tokens(self) -> int:
        """Get total tokens used (input + output)."""
        return self.tokens_input + self.tokens_output


class LLMError(Exception):
    """Exception raised when LLM operation fails.

    Attributes:
        message: Error description.
        model: Model that caused the error.
        error_code: Error code if available.
        original_error: Original exception if any.
    """

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        error_code: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.model = model
        self.error_code = error_code
        self.original_error = original_error
        super().__init__(self.message)


class LLMClient:
    """Client for LLM operations via LiteLLM.

    Attributes:
        model: Default model to use for completions.
        timeout: Request timeout in seconds.
        max_retries: Maximum retry attempts.

    Example:
        >>> client = LLMClient()
        >>> data = await client.complete_json(
        ...     prompt="Return a JSON object with a 'title' key",
        ... )
    """

    def __init__(
        self,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        llm_settings: Optional[LLMSettings] = None,
    ):
        """Initialize the LLM client.

        Args:
            model: Default model in LiteLLM format. Falls back to settings.
            timeout: Request timeout in seconds. Falls back to settings.
            max_retries: Maximum retry attempts. Falls back to settings.
            llm_settings: LLM configuration. Uses get_settings() if None.
        """
        self._settings = llm_settings or get_settings().llm

        self._model = model or self._settings.model
        self._timeout = timeout or self._settings.request_timeout
        self._max_retries = max_retries if max_retries is not None else self._settings.max_retries

        self._configure_litellm()

        logger.debug(
            "LLMClient initialized with model=%s, timeout=%.1fs, max_retries=%d",
            self._model,
            self._timeout,
            self._max_retries,
        )

    @property
    def model(self) -> str:
        """Default model for completions."""
        return self._model

    def _configure_litellm(self) -> None:
        """Configure LiteLLM global settings."""
        litellm.set_verbose = False
        litellm.drop_params = True

    def _get_provider_params(self) -> dict[str, Any]:
        """Build api_key and api_base parameters for acompletion()."""
        params: dict[str, Any] = {}
        if self._settings.api_key is not None:
            params["api_key"] = self._settings.api_key.get_secret_value()
        if self._settings.api_base:
            params["api_base"] = self._settings.api_base
        return params

    async def complete(
        self,
        prompt: str,
        model: Optional[str] = None,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs,
    ) -> LLMResponse:
        """Generate a completion for the given prompt.

        Args:
            prompt: User prompt text.
            model: Override default model for this request.
            system_prompt: Optional system prompt to set context.
            temperature: Sampling temperature. Falls back to settings.
            max_tokens: Maximum tokens to generate. Falls back to settings.
            **kwargs: Additional LiteLLM parameters.

        Returns:
            LLMResponse with generated content and metadata.

        Raises:
            LLMError: If generation fails after retries.
            ValueError: If prompt is empty.
        """
        if not prompt or not prompt.strip():
            raise ValueError("Prompt cannot be empty")

        use_model = model or self._model

        chat_messages: list[dict[str, str]] = []
        if system_prompt:
            chat_messages.append({"role": "system", "content": system_prompt})
        chat_messages.append({"role": "user", "content": prompt})

        try:
            response = await acompletion(
                model=use_model,
                messages=chat_messages,
                temperature=temperature if temperature is not None else self._settings.temperature,
                max_tokens=max_tokens or self._settings.max_tokens,
                timeout=self._timeout,
                num_retries=self._max_retries,
                **self._get_provider_params(),
                **kwargs,
            )

            content = response.choices[0].message.content or ""
            finish_reason = response.choices[0].finish_reason or "stop"

            tokens_input = getattr(response.usage, "prompt_tokens", 0) or 0
            tokens_output = getattr(response.usage, "completion_tokens", 0) or 0

            logger.debug(
                "Completion generated: model=%s, tokens_in=%d, tokens_out=%d",
                use_model,
                tokens_input,
                tokens_output,
            )

            return LLMResponse(
                content=content,
                model=use_model,
                tokens_input=tokens_input,
                tokens_output=tokens_output,
                finish_reason=finish_reason,
                raw_response=response,
            )

        except Exception as e:
            logger.error(
                "Completion failed: model=%s, prompt_length=%d, error=%s",
                use_model,
                len(prompt),
                str(e),
            )
            raise LLMError(
                message=f"Completion failed: {str(e)}",
                model=use_model,
                original_error=e,
            ) from e

    async def complete_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs,
    ) -> dict[str, Any]:
        """Generate a completion and parse it as a JSON object.

        Providers that ignore response_format sometimes wrap the object in a
        markdown code fence, which is stripped before parsing.

        Raises:
            LLMError: If generation fails or the output is not a JSON object.
        """
        response = await self.complete(
            prompt,
            system_prompt=system_prompt,
            response_format={"type": "json_object"},
            **kwargs,
        )

        text = _CODE_FENCE.sub("", response.content.strip())
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise LLMError(
                message="Model returned invalid JSON",
                model=response.model,
                error_code="invalid_json",
                original_error=e,
            ) from e

        if not isinstance(data, dict):
            raise LLMError(
                message="Model returned JSON that is not an object",
                model=response.model,
                error_code="invalid_json",
            )
        return data
