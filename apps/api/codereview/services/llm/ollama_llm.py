from __future__ import annotations
import httpx

from codereview.core.errors import GenerationFailed
from codereview.services.llm.base import CompletionRequest

class OllamaLLM:
    def __init__(
        self,
        model: str = "qwen2.5-coder:7b-instruct",
        base_url: str = "http://localhost:11434",
        timeout: float = 300.0,
    ):
        self.model = model
        self.url = f"{base_url.rstrip('/')}/api/generate"
        self.timeout = timeout

    async def complete(self, request: CompletionRequest) -> str:
        payload = {
            "model": self.model,
            "system": request.system_instructions,
            "prompt": request.user_prompt,
            "stream": False,
            "options": {
                "num_predict": request.max_output_tokens,
                "temperature": request.temperature,
            },
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                r = await client.post(self.url, json=payload)
                r.raise_for_status()
                data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise GenerationFailed(f"Ollama request failed: {e}") from e

        return (data.get("response") or "").strip()
