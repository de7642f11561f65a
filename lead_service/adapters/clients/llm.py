# lead_service/adapters/clients/llm.py
from __future__ import annotations

from dataclasses import dataclass

from openai import AsyncOpenAI

from ...config import settings


@dataclass(frozen=True)
class LlmReply:
    text: str
    input_tokens: int = 0
    output_tokens: int = 0


class OpenAIChatClient:
    def __init__(self, *, api_key: str | None = None, base_url: str | None = None, model: str | None = None) -> None:
        self.model = model or settings.LLM_MODEL
        self._client = AsyncOpenAI(
            api_key=api_key or settings.LLM_API_KEY,
            base_url=base_url or settings.LLM_BASE_URL,
        )

    async def complete(self, system: str, user: str) -> LlmReply:
        resp = await self._client.chat.completions.create(
            model=self.model,
            max_tokens=int(settings.LLM_MAX_TOKENS),
            temperature=0,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        )
        text = (resp.choices[0].message.content or "") if resp.choices else ""
        usage = resp.usage
        return LlmReply(
            text=text.strip(),
            input_tokens=int(getattr(usage, "prompt_tokens", 0) or 0),
            output_tokens=int(getattr(usage, "completion_tokens", 0) or 0),
        )
