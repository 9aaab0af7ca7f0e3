from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class CompletionRequest:
    system_instructions: str
    user_prompt: str
    max_output_tokens: int
    temperature: float


class TextCompletion(Protocol):
    async def complete(self, request: CompletionRequest) -> str: ...
