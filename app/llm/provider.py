"""
LLM Provider interface: chat messages in, text out.

LLMRunner owns prompt rendering, JSON parsing and run logging; a provider only
talks to the model endpoint. Tests inject a fake provider.
"""
from abc import ABC, abstractmethod
from typing import Optional, Dict
from collections.abc import Iterator
from dataclasses import dataclass


@dataclass
class LLMResponse:
    """One completed chat call."""
    content: str
    tokens_in: int = 0
    tokens_out: int = 0
    model: str = ""
    cost_estimate: float = 0.0
    finish_reason: Optional[str] = None

    @property
    def truncated(self) -> bool:
        return self.finish_reason == "length"


class LLMProvider(ABC):
    """Abstract base class for chat-completion backends."""

    @abstractmethod
    def chat(
        self,
        messages: list[Dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        **kwargs
    ) -> LLMResponse:
        """
        Generate a chat completion.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: Model identifier
            temperature: Sampling temperature
            max_tokens: Output token budget
            json_mode: Ask the backend to constrain the reply to a JSON object

        Raises:
            Any exception on transport or API failure; LLMRunner converts it.
        """

    @abstractmethod
    def stream(
        self,
        messages: list[Dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> Iterator[str]:
        """Yield text chunks of a chat completion as they arrive."""
