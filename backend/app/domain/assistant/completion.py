"""Text-completion clients used by the assistant."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from openai import AsyncOpenAI, OpenAIError

from app.settings import settings

from .exceptions import CompletionError

logger = logging.getLogger(__name__)


class TextCompletionClient(Protocol):
	async def complete(self, prompt: str, *, max_tokens: int) -> str:
		...


class OpenAICompletionClient:
	"""Single-shot prompt completion over the OpenAI chat API.

	No retries: any SDK failure, or an empty reply, surfaces as
	:class:`CompletionError`.
	"""

	def __init__(self, client: Optional[AsyncOpenAI] = None, *, model: Optional[str] = None) -> None:
		self._client = client
		self._model = model or settings.assistant_model

	def _get_client(self) -> AsyncOpenAI:
		if self._client is None:
			self._client = AsyncOpenAI(
				api_key=settings.openai_api_key or None,
				base_url=settings.openai_base_url or None,
			)
		return self._client

	async def complete(self, prompt: str, *, max_tokens: int) -> str:
		try:
			response = await self._get_client().chat.completions.create(
				model=self._model,
				messages=[{"role": "user", "content": prompt}],
				max_tokens=max_tokens,
			)
		except OpenAIError as exc:
			logger.warning("completion request failed", extra={"model": self._model}, exc_info=True)
			raise CompletionError(str(exc) or CompletionError.message) from exc
		choices = getattr(response, "choices", None) or []
		text = choices[0].message.content if choices else None
		if not text:
			raise CompletionError("Text completion returned no content")
		return text.strip()
