"""
Generative provider client.

Single entry point for every model call in the pipeline:

    result = await AIClient(settings).generate(GenerationKind.RESUME, prompt)

Provider variants:
- mock: deterministic kind-keyed payloads, no network, meta.mock=True
- openai: one chat completion per attempt through langchain_openai,
  retried with exponential backoff and jitter on transient failures
- anthropic: reserved placeholder, raises ProviderNotImplementedError

Prompts are checked for length before any I/O so bad input never costs
a network round-trip.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import openai
from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from src.common.config import PROVIDER_MAX_PROMPT_CHARS, Config, GenerationSettings
from src.common.json_utils import try_parse_json
from src.common.mock_payloads import MOCK_TOKENS, get_mock_payload
from src.common.types import (
    GenerateResult,
    GenerationKind,
    ProviderKind,
    ProviderMeta,
    TokenUsage,
)

logger = logging.getLogger(__name__)

MIN_PROMPT_CHARS = 10
MAX_PROMPT_CHARS = PROVIDER_MAX_PROMPT_CHARS


# ===== Errors =====

class ProviderError(Exception):
    """Base class for provider client failures."""


class PromptValidationError(ProviderError):
    """Prompt rejected locally before any network call."""


class TransientProviderError(ProviderError):
    """Timeout, connection abort, 5xx or unknown status. Retried."""

    def __init__(self, message: str, status: Optional[int] = None, attempts: int = 0):
        super().__init__(message)
        self.status = status
        self.attempts = attempts


class PermanentProviderError(ProviderError):
    """4xx or bad credentials. Never retried."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ProviderNotImplementedError(ProviderError):
    """Reserved provider variant without a backend."""


# ===== Transport =====

@dataclass
class ChatCompletion:
    """Raw outcome of one chat completion request."""

    text: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    raw: Any = None


class ChatTransport(ABC):
    """One chat completion request per call. No retries at this level."""

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        model: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> ChatCompletion:
        """
        Send a single user message and return the completion.

        Raises:
            TransientProviderError: Retryable failure
            PermanentProviderError: Non-retryable failure
        """


def _message_text(content: Any) -> str:
    """Concatenate completion content that may arrive as a list of parts."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    return "" if content is None else str(content)


def classify_status(status: Optional[int], message: str) -> ProviderError:
    """
    Map an HTTP status to a provider error.

    4xx are permanent except 408 (request timeout) and 429 (rate limit);
    5xx and unknown statuses are transient.
    """
    if status is not None and 400 <= status < 500 and status not in (408, 429):
        return PermanentProviderError(message, status=status)
    return TransientProviderError(message, status=status)


class OpenAIChatTransport(ChatTransport):
    """Chat completions through langchain_openai.ChatOpenAI."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self._api_key = api_key if api_key is not None else Config.OPENAI_API_KEY
        self._base_url = base_url if base_url is not None else Config.get_llm_base_url()
        if not self._api_key:
            raise PermanentProviderError("OPENAI_API_KEY is not configured")

    def _build_llm(self, model: str, temperature: float, max_tokens: int, json_mode: bool):
        llm = ChatOpenAI(
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            api_key=self._api_key,
            base_url=self._base_url,
            # Retries are owned by AIClient
            max_retries=0,
        )
        if json_mode:
            return llm.bind(response_format={"type": "json_object"})
        return llm

    async def complete(
        self,
        prompt: str,
        model: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> ChatCompletion:
        llm = self._build_llm(model, temperature, max_tokens, json_mode)
        try:
            response = await llm.ainvoke([HumanMessage(content=prompt)])
        except openai.APIStatusError as e:
            raise classify_status(e.status_code, f"provider returned {e.status_code}: {e.message}") from e
        except (openai.APITimeoutError, openai.APIConnectionError) as e:
            raise TransientProviderError(f"provider connection failed: {e}") from e

        usage = getattr(response, "usage_metadata", None) or {}
        prompt_tokens = int(usage.get("input_tokens") or 0)
        completion_tokens = int(usage.get("output_tokens") or 0)
        return ChatCompletion(
            text=_message_text(response.content),
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=int(usage.get("total_tokens") or prompt_tokens + completion_tokens),
            raw=getattr(response, "response_metadata", None),
        )


# ===== Client =====

@dataclass
class ProviderOptions:
    """Per-call overrides; None means use the settings default."""

    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    timeout_seconds: Optional[float] = None
    max_retries: Optional[int] = None
    json_mode: bool = True
    provider: Optional[ProviderKind] = None


def validate_prompt(prompt: Any) -> str:
    """
    Reject prompts that are missing, too short or too long.

    Raises:
        PromptValidationError: On any violation
    """
    if not isinstance(prompt, str) or len(prompt.strip()) < MIN_PROMPT_CHARS:
        raise PromptValidationError("prompt too short or invalid")
    if len(prompt) > MAX_PROMPT_CHARS:
        raise PromptValidationError(
            f"prompt exceeds maximum length ({MAX_PROMPT_CHARS} chars)"
        )
    return prompt


class AIClient:
    """
    Provider-agnostic generation client.

    Args:
        settings: Provider knobs (defaults to the environment)
        transport: Chat transport for the remote variant (built lazily)
        sleep: Awaitable used between retries (injectable for tests)
    """

    def __init__(
        self,
        settings: Optional[GenerationSettings] = None,
        transport: Optional[ChatTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings or GenerationSettings.from_config()
        self._transport = transport
        self._sleep = sleep

    def select_provider(self, requested: Optional[ProviderKind] = None) -> ProviderKind:
        """Pick the provider variant once per call."""
        if self.settings.mock_mode or requested == ProviderKind.MOCK:
            return ProviderKind.MOCK
        if requested is not None:
            return requested
        try:
            return ProviderKind(self.settings.provider)
        except ValueError:
            logger.warning(f"Unknown provider '{self.settings.provider}', using openai")
            return ProviderKind.OPENAI

    def _get_transport(self) -> ChatTransport:
        if self._transport is None:
            self._transport = OpenAIChatTransport()
        return self._transport

    async def generate(
        self,
        kind: GenerationKind,
        prompt: str,
        options: Optional[ProviderOptions] = None,
    ) -> GenerateResult:
        """
        Generate output for one prompt.

        Args:
            kind: Generation kind (selects the mock payload)
            prompt: Sanitized prompt text
            options: Per-call overrides

        Returns:
            GenerateResult with json (or text), token usage and meta

        Raises:
            PromptValidationError: Prompt missing, too short or too long
            TransientProviderError: Retries exhausted
            PermanentProviderError: Non-retryable provider failure
            ProviderNotImplementedError: Placeholder variant selected
        """
        validate_prompt(prompt)
        options = options or ProviderOptions()
        provider = self.select_provider(options.provider)
        model = options.model or self.settings.default_model

        if provider == ProviderKind.MOCK:
            return self._generate_mock(kind, model)
        if provider == ProviderKind.ANTHROPIC:
            raise ProviderNotImplementedError("anthropic provider is not implemented")
        return await self._generate_remote(kind, prompt, model, options)

    def _generate_mock(self, kind: GenerationKind, model: str) -> GenerateResult:
        kind_value = kind.value if isinstance(kind, GenerationKind) else str(kind)
        payload = get_mock_payload(kind_value)
        logger.debug(f"Mock provider served kind={kind_value}")
        return GenerateResult(
            text="",
            json=payload,
            raw=None,
            tokens=TokenUsage(total_tokens=MOCK_TOKENS),
            meta=ProviderMeta(provider=ProviderKind.MOCK.value, model=model, mock=True),
        )

    async def _generate_remote(
        self,
        kind: GenerationKind,
        prompt: str,
        model: str,
        options: ProviderOptions,
    ) -> GenerateResult:
        settings = self.settings
        temperature = settings.temperature if options.temperature is None else options.temperature
        max_tokens = options.max_tokens or settings.max_tokens
        timeout = options.timeout_seconds or settings.timeout_seconds
        max_retries = settings.max_retries if options.max_retries is None else options.max_retries
        transport = self._get_transport()

        def _log_retry(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                f"Provider attempt {retry_state.attempt_number}/{max_retries + 1} failed "
                f"for {kind.value}: {error}; retrying"
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(0, max_retries) + 1),
            wait=wait_exponential(
                multiplier=settings.backoff_base_seconds,
                max=settings.backoff_cap_seconds,
            ) + wait_random(0, settings.backoff_jitter_seconds),
            retry=retry_if_exception_type(TransientProviderError),
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )

        started = time.perf_counter()
        attempts = 0
        logger.info(
            f"Provider call kind={kind.value} model={model} "
            f"prompt_preview={prompt[:80]!r}"
        )
        try:
            async for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    completion = await self._attempt(
                        transport, prompt, model, temperature, max_tokens,
                        options.json_mode, timeout,
                    )
        except TransientProviderError as e:
            e.attempts = attempts
            logger.error(f"Provider gave up after {attempts} attempts for {kind.value}: {e}")
            raise

        latency_ms = int((time.perf_counter() - started) * 1000)
        parsed = try_parse_json(completion.text) if options.json_mode else None
        logger.info(
            f"Provider ok kind={kind.value} attempts={attempts} "
            f"tokens={completion.total_tokens} latency_ms={latency_ms}"
        )
        return GenerateResult(
            text=completion.text,
            json=parsed,
            raw=completion.raw,
            tokens=TokenUsage(
                prompt_tokens=completion.prompt_tokens,
                completion_tokens=completion.completion_tokens,
                total_tokens=completion.total_tokens,
            ),
            meta=ProviderMeta(
                provider=ProviderKind.OPENAI.value,
                model=model,
                attempts=attempts,
                retries=attempts - 1,
                latency_ms=latency_ms,
            ),
        )

    async def _attempt(
        self,
        transport: ChatTransport,
        prompt: str,
        model: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
        timeout: float,
    ) -> ChatCompletion:
        """One request under its own timeout."""
        try:
            return await asyncio.wait_for(
                transport.complete(prompt, model, temperature, max_tokens, json_mode),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise TransientProviderError(f"provider request timed out after {timeout}s") from e
