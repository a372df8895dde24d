"""
OpenAI provider implementation.

Works against api.openai.com or any OpenAI-compatible endpoint (OPENAI_BASE_URL).
"""
import logging
from typing import Optional, Dict
from collections.abc import Iterator
from openai import OpenAI, APIError

from app.core import config
from app.llm.provider import LLMProvider, LLMResponse

logger = logging.getLogger(__name__)

# USD per 1M tokens (input/output); unknown models are priced as gpt-4o-mini
MODEL_PRICING = {
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "llama-3.3-70b-versatile": {"input": 0.59, "output": 0.79},
}


def estimate_cost(tokens_in: int, tokens_out: int, model: str) -> float:
    pricing = MODEL_PRICING.get(model, MODEL_PRICING["gpt-4o-mini"])
    return (tokens_in * pricing["input"] + tokens_out * pricing["output"]) / 1_000_000


class OpenAIProvider(LLMProvider):
    """Chat completions through the official OpenAI SDK."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key or config.OPENAI_API_KEY
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY not configured")
        self.client = OpenAI(
            api_key=self.api_key,
            base_url=base_url or config.OPENAI_BASE_URL,
            timeout=config.LLM_TIMEOUT_SECONDS,
            max_retries=config.LLM_MAX_RETRIES,
        )
        logger.info(f"OpenAI provider initialized (base_url={base_url or config.OPENAI_BASE_URL or 'default'})")

    def chat(
        self,
        messages: list[Dict[str, str]],
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        **kwargs
    ) -> LLMResponse:
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens or 2000,
                **kwargs
            )
        except APIError as e:
            logger.error(f"OpenAI API error: {e}", exc_info=True)
            raise

        choice = response.choices[0]
        tokens_in = response.usage.prompt_tokens if response.usage else 0
        tokens_out = response.usage.completion_tokens if response.usage else 0
        if choice.finish_reason == "length":
            logger.warning(f"Completion hit the token limit: model={model}, max_tokens={max_tokens}")

        return LLMResponse(
            content=choice.message.content or "",
            tokens_in=tokens_in,
            tokens_out=tokens_out,
            model=model,
            cost_estimate=estimate_cost(tokens_in, tokens_out, model),
            finish_reason=choice.finish_reason,
        )

    def stream(
        self,
        messages: list[Dict[str, str]],
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> Iterator[str]:
        try:
            stream = self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens or 2000,
                stream=True,
                **kwargs
            )

            for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        except APIError as e:
            logger.error(f"OpenAI streaming API error: {e}", exc_info=True)
            raise
