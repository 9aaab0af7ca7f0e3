from __future__ import annotations

from loguru import logger

from codereview.core.config import Settings
from codereview.core.errors import GenerationFailed
from codereview.services.llm.base import CompletionRequest, TextCompletion
from codereview.services.llm.gemini_chat import GeminiChatLLM
from codereview.services.llm.ollama_llm import OllamaLLM


class FallbackLLM:
    """Try the primary backend, fall back to the secondary on any generation failure."""

    def __init__(self, primary: TextCompletion, secondary: TextCompletion):
        self.primary = primary
        self.secondary = secondary

    async def complete(self, request: CompletionRequest) -> str:
        try:
            return await self.primary.complete(request)
        except GenerationFailed as e:
            logger.warning("Primary LLM failed ({}), falling back", e)
            return await self.secondary.complete(request)


def build_llm(settings: Settings) -> TextCompletion:
    provider = (settings.LLM_PROVIDER or "auto").lower()
    if provider not in ("auto", "gemini", "ollama"):
        provider = "auto"

    ollama = OllamaLLM(
        model=settings.OLLAMA_MODEL,
        base_url=settings.OLLAMA_BASE_URL,
        timeout=settings.OLLAMA_TIMEOUT_SECONDS,
    )
    if provider == "ollama":
        return ollama

    if provider == "gemini":
        return GeminiChatLLM(api_key=settings.GEMINI_API_KEY, model=settings.GEMINI_CHAT_MODEL)

    # auto: Gemini when a key is configured, Ollama otherwise / on failure
    if not settings.GEMINI_API_KEY:
        return ollama
    return FallbackLLM(
        GeminiChatLLM(api_key=settings.GEMINI_API_KEY, model=settings.GEMINI_CHAT_MODEL),
        ollama,
    )
