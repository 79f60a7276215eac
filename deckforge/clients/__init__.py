"""LLM and image generation clients"""

from deckforge.clients.llm_client import (
    LLMClient,
    LLMError,
    LLMErrorCode,
    StreamingCallbacks,
    VertexLLMClient,
    get_llm_client,
)

__all__ = [
    "LLMClient",
    "LLMError",
    "LLMErrorCode",
    "StreamingCallbacks",
    "VertexLLMClient",
    "get_llm_client",
]
