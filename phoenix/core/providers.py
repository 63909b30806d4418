"""AI provider vocabulary shared by the LLM clients and the provider registry."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AIProvider(str, Enum):
    """Selectable AI backends. Each supplies a chat model and a paired vector index."""
    OLLAMA = "ollama"
    GEMINI = "gemini"
    OPENAI = "openai"

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional["AIProvider"]:
        """Case-insensitive lookup; returns None for unknown or empty names."""
        if not name:
            return None
        try:
            return cls(name.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling options for a single LLM invocation."""
    temperature: float
    repeat_penalty: Optional[float] = None
