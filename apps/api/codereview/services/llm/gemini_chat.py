from __future__ import annotations
from typing import Optional

import httpx
from google import genai
from google.genai import types
from google.genai.errors import APIError, ClientError

from codereview.core.errors import GenerationFailed, LLMRateLimitError
from codereview.services.llm.base import CompletionRequest


class GeminiChatLLM:
    def __init__(self, api_key: Optional[str], model: str = "gemini-2.0-flash"):
        if not api_key:
            raise RuntimeError("GEMINI_API_KEY is not set")
        self.client = genai.Client(api_key=api_key)
        self.model = model

    async def complete(self, request: CompletionRequest) -> str:
        config = types.GenerateContentConfig(
            system_instruction=request.system_instructions,
            max_output_tokens=request.max_output_tokens,
            temperature=request.temperature,
        )
        try:
            res = await self.client.aio.models.generate_content(
                model=self.model,
                contents=request.user_prompt,
                config=config,
            )
        except ClientError as e:
            # 429 quota/rate-limit
            if getattr(e, "code", None) == 429 or getattr(e, "status_code", None) == 429:
                raise LLMRateLimitError(f"Gemini quota exceeded: {e}") from e
            raise GenerationFailed(f"Gemini request failed: {e}") from e
        except APIError as e:
            raise GenerationFailed(f"Gemini request failed: {e}") from e
        except httpx.HTTPError as e:
            # transport errors surface raw once the SDK gives up retrying
            raise GenerationFailed(f"Gemini unreachable: {e.__class__.__name__}") from e
        return (res.text or "").strip()
