"""
Structured Generation Client
============================

Given a system prompt, a user prompt and a pydantic output type, return a
validated instance of that type or raise LLMError.

The Vertex client runs Gemini through pydantic-ai. Rate limits are retried
with exponential backoff (see vertex_retry); invalid responses are not
retried at this layer.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError, UnexpectedModelBehavior

from config.settings import Settings, get_settings
from deckforge.utils.logger import setup_logger
from deckforge.utils.vertex_retry import call_with_retry, is_rate_limit_error

logger = setup_logger(__name__)

T = TypeVar("T", bound=BaseModel)

TRANSIENT_STATUS_CODES = {429, 500, 502, 503, 504}


class LLMErrorCode(str, Enum):
    MODEL_ERROR = "MODEL_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    RATE_LIMITED = "RATE_LIMITED"
    PARSE_ERROR = "PARSE_ERROR"


class LLMError(Exception):
    """A structured generation call failed."""

    def __init__(self, message: str, code: LLMErrorCode, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.cause = cause

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


@dataclass
class StreamingCallbacks:
    """
    Notifications emitted while a structured response streams in.

    All callbacks are plain functions and must return quickly; anything slow
    should be scheduled by the callback itself.
    """
    on_token: Optional[Callable[[str], None]] = None
    on_partial_json: Optional[Callable[[Dict[str, Any]], None]] = None
    on_complete: Optional[Callable[[Any], None]] = None
    on_error: Optional[Callable[[BaseException], None]] = None


class LLMClient(ABC):
    """Interface every language-model client implements."""

    @abstractmethod
    async def generate(self, system_prompt: str, user_prompt: str, output_type: Type[T]) -> T:
        """Return a validated instance of output_type, or raise LLMError."""

    @abstractmethod
    async def generate_streaming(
        self,
        system_prompt: str,
        user_prompt: str,
        output_type: Type[T],
        callbacks: StreamingCallbacks,
    ) -> T:
        """Like generate(), additionally reporting tokens and partial snapshots."""


def _is_transient(error: BaseException) -> bool:
    if isinstance(error, ModelHTTPError):
        return error.status_code in TRANSIENT_STATUS_CODES
    return is_rate_limit_error(error)


def _to_llm_error(error: BaseException, operation: str) -> LLMError:
    """Map a provider or validation error onto an LLMError code."""
    if isinstance(error, LLMError):
        return error
    if isinstance(error, (ValidationError, UnexpectedModelBehavior)):
        return LLMError(f"{operation}: response did not match schema: {error}", LLMErrorCode.INVALID_RESPONSE, error)
    if isinstance(error, json.JSONDecodeError):
        return LLMError(f"{operation}: response was not valid JSON: {error}", LLMErrorCode.PARSE_ERROR, error)
    if is_rate_limit_error(error) or (isinstance(error, ModelHTTPError) and error.status_code == 429):
        return LLMError(f"{operation}: rate limited by provider", LLMErrorCode.RATE_LIMITED, error)
    return LLMError(f"{operation}: {error}", LLMErrorCode.MODEL_ERROR, error)


def _snapshot(value: Any) -> Dict[str, Any]:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    return value


def _common_prefix_length(a: str, b: str) -> int:
    limit = min(len(a), len(b))
    i = 0
    while i < limit and a[i] == b[i]:
        i += 1
    return i


class VertexLLMClient(LLMClient):
    """
    Gemini on Vertex AI through pydantic-ai.

    A fresh Agent is built per call shape (system prompt + output type); agents
    are cheap and the system prompt varies per slide.
    """

    def __init__(
        self,
        model_name: str = "gemini-2.5-flash",
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
    ):
        from deckforge.utils.gcp_auth import initialize_vertex_ai

        initialize_vertex_ai()

        self.model_name = model_name
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        logger.info(f"VertexLLMClient initialized with model: google-vertex:{model_name}")

    def _agent(self, system_prompt: str, output_type: Type[T]) -> Agent:
        return Agent(
            model=f"google-vertex:{self.model_name}",
            system_prompt=system_prompt,
            output_type=output_type,
        )

    async def generate(self, system_prompt: str, user_prompt: str, output_type: Type[T]) -> T:
        agent = self._agent(system_prompt, output_type)
        operation = f"Generate {output_type.__name__}"

        try:
            result = await call_with_retry(
                lambda: agent.run(user_prompt),
                max_retries=self.max_retries,
                base_delay=self.retry_base_delay,
                operation_name=operation,
                is_retryable=_is_transient,
            )
        except Exception as e:
            raise _to_llm_error(e, operation) from e

        # Pydantic-AI 1.0+: use .output instead of .data
        return result.output

    async def generate_streaming(
        self,
        system_prompt: str,
        user_prompt: str,
        output_type: Type[T],
        callbacks: StreamingCallbacks,
    ) -> T:
        agent = self._agent(system_prompt, output_type)
        emitted = ""

        try:
            async with agent.run_stream(user_prompt) as result:
                async for partial in result.stream_output(debounce_by=None):
                    snapshot = _snapshot(partial)
                    serialized = json.dumps(snapshot, ensure_ascii=False)

                    # Snapshots are re-serialized whole, so only the part past
                    # the shared prefix is new.
                    start = _common_prefix_length(emitted, serialized)
                    if callbacks.on_token and len(serialized) > start:
                        callbacks.on_token(serialized[start:])
                    emitted = serialized

                    if callbacks.on_partial_json and isinstance(snapshot, dict):
                        callbacks.on_partial_json(snapshot)

                output = await result.get_output()

        except Exception as e:
            logger.warning(f"⚠️  Streaming {output_type.__name__} failed, falling back to non-streaming: {e}")
            if callbacks.on_error:
                callbacks.on_error(e)
            output = await self.generate(system_prompt, user_prompt, output_type)

        if callbacks.on_complete:
            callbacks.on_complete(output)
        return output


def get_llm_client(settings: Optional[Settings] = None, model_name: Optional[str] = None) -> LLMClient:
    """
    Return the mock client when FAKE_LLM (or LLM_PROVIDER=mock) is set,
    otherwise a Vertex client for the given model.
    """
    settings = settings or get_settings()

    if settings.use_mock_llm:
        from deckforge.clients.mock_llm_client import MockLLMClient

        logger.info("🧪 Using MockLLMClient (FAKE_LLM)")
        return MockLLMClient()

    return VertexLLMClient(
        model_name=model_name or settings.GCP_MODEL_CONTENT,
        max_retries=settings.MAX_LLM_RETRIES,
        retry_base_delay=settings.LLM_RETRY_BASE_DELAY,
    )
