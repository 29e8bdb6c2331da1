"""Answer generation through the Anthropic Messages API."""

import logging
from typing import Optional

import anthropic
from anthropic import Anthropic

from config.settings import GenerationConfig
from indexer.assembler import PERSONA_INSTRUCTIONS, build_prompt

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """Raised when an answer cannot be generated."""


class AnthropicGenerator:
    """Sends the assembled prompt as a single user message."""

    def __init__(self, config: Optional[GenerationConfig] = None,
                 client: Optional[Anthropic] = None):
        self.config = config or GenerationConfig.from_env()

        if client is None:
            if not self.config.api_key:
                raise GenerationError("ANTHROPIC_API_KEY not configured")
            client = Anthropic(api_key=self.config.api_key, timeout=self.config.timeout)
        self._client = client

    def generate(self, context: str, question: str,
                 system_instructions: str = PERSONA_INSTRUCTIONS) -> str:
        """Generate an answer grounded in the given context.

        Raises:
            GenerationError: If the API call fails or returns no text
        """
        prompt = build_prompt(context, question, system_instructions)

        try:
            response = self._client.messages.create(
                model=self.config.model,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.error(f"Anthropic request failed: {e}")
            raise GenerationError(str(e)) from e

        text_parts = []
        for block in getattr(response, "content", []) or []:
            value = getattr(block, "text", None)
            if value:
                text_parts.append(str(value))

        answer = "\n".join(text_parts).strip()
        if not answer:
            raise GenerationError("Empty response from model")
        return answer
