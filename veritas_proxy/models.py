"""Pydantic models for the chat route payloads."""

from typing import Any

from pydantic import BaseModel, ConfigDict


DEFAULT_MAX_TOKENS = 1000


class ClaudeProxyRequest(BaseModel):
    """Inbound body of POST /api/claude. Fields are forwarded without type checks."""
    model_config = ConfigDict(extra="ignore")

    apiKey: Any = None
    system: Any = None
    messages: Any = None
    maxTokens: Any = None


class AnthropicMessagesRequest(BaseModel):
    """Outbound body for the Anthropic Messages API."""
    model: str
    max_tokens: Any = DEFAULT_MAX_TOKENS
    system: Any = None
    messages: Any = None

    @classmethod
    def from_proxy_request(cls, request: ClaudeProxyRequest, model: str) -> "AnthropicMessagesRequest":
        # Only keys the caller sent are carried over, explicit nulls included
        supplied = {
            name: getattr(request, name)
            for name in ("system", "messages")
            if name in request.model_fields_set
        }
        return cls(
            model=model,
            # Any falsy value (absent, null, 0, "") falls back to the default
            max_tokens=request.maxTokens or DEFAULT_MAX_TOKENS,
            **supplied,
        )

    def to_payload(self) -> dict:
        return self.model_dump(exclude_unset=True)
