"""
OpenAI LLM Provider.
"""

import logging
from typing import Optional

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """
    OpenAI text-generation provider.

    Every request carries an explicit timeout and no client-side retries:
    callers treat a slow or failed call as a reason to fall back.
    """

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_id: str = DEFAULT_MODEL,
        max_tokens: int = 256,
        temperature: float = 0.0,
        timeout: float = 15.0,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model_id: Model ID
            max_tokens: Maximum tokens
            temperature: Generation temperature
            timeout: Request timeout in seconds
        """
        client_kwargs = {"timeout": timeout, "max_retries": 0}
        if api_key:
            client_kwargs["api_key"] = api_key

        self._async_client = AsyncOpenAI(**client_kwargs)

        self.model_id = model_id
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout

        logger.info(f"OpenAI provider initialized: {model_id}")

    def _messages(self, prompt: str, system: Optional[str]):
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def agenerate(
        self,
        prompt: str,
        system: Optional[str] = None
    ) -> str:
        """Async generation using the OpenAI async client."""
        try:
            response = await self._async_client.chat.completions.create(
                model=self.model_id,
                messages=self._messages(prompt, system),
                max_tokens=self.max_tokens,
                temperature=self.temperature
            )
            return (response.choices[0].message.content or "").strip()

        except Exception as e:
            logger.error(f"OpenAI async generation failed: {e}")
            raise
