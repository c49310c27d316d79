import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from tarot.errors import UpstreamError
from tarot.prompt import SYSTEM_PROMPT


logger = logging.getLogger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MODEL = "llama-3.3-70b-versatile"


class InterpretationClient:
    """
    Тлумачення розкладу через OpenAI-сумісний ендпоінт (за замовчуванням Groq).
    Одна спроба на виклик: без ретраїв.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = GROQ_BASE_URL,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            max_retries=0,
        )

    async def interpret(self, prompt: str) -> str:
        logger.info("🤖 Sending prompt to %s", self.model)
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except openai.APIStatusError as e:
            logger.error("LLM API error: status=%s body=%s", e.status_code, e.body)
            raise UpstreamError(e.message, status=e.status_code) from e
        except openai.APIError as e:
            # з'єднання, таймаут, інші транспортні збої
            logger.error("LLM transport error: %s", e)
            raise UpstreamError(str(e) or type(e).__name__) from e

        choices = getattr(resp, "choices", None)
        if not choices:
            logger.error("LLM response without choices: %r", resp)
            raise UpstreamError("malformed response: no choices")

        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if not content:
            logger.error("LLM response without content: %r", resp)
            raise UpstreamError("malformed response: empty content")

        logger.info("✅ Interpretation received (%d chars)", len(content))
        return content
