import logging
from typing import Optional

from openai import OpenAI

from app.core.agents.quiz.question_generator import QuestionGenerator
from app.core.config import settings

logger = logging.getLogger(__name__)


class LLMFactory:
    """Factory for the OpenAI client and the question generator built on it."""

    @staticmethod
    def create_client(api_key: Optional[str] = None, timeout: Optional[float] = None) -> OpenAI:
        """
        Create a configured OpenAI client.

        SDK retries are disabled; the question generator applies its own
        backoff on rate limiting.

        Args:
            api_key: OpenAI API key (optional, defaults to settings).
            timeout: Request timeout in seconds (optional, defaults to settings).
        """
        return OpenAI(
            api_key=api_key or settings.OPENAI_API_KEY,
            timeout=timeout or settings.OPENAI_TIMEOUT,
            max_retries=0,
        )

    @staticmethod
    def create_question_generator(client: Optional[OpenAI] = None) -> Optional[QuestionGenerator]:
        """
        Build the process-wide question generator.

        Returns None when no API key is configured; AI generation then
        falls back to deterministic questions.
        """
        if client is None:
            if not settings.OPENAI_API_KEY:
                logger.warning("OPENAI_API_KEY is not set, AI question generation is disabled")
                return None
            client = LLMFactory.create_client()

        logger.info(f"Question generator ready (model={settings.OPENAI_MODEL})")
        return QuestionGenerator(
            client=client,
            model=settings.OPENAI_MODEL,
            max_output_tokens=settings.OPENAI_MAX_OUTPUT_TOKENS,
            temperature=settings.OPENAI_TEMPERATURE,
        )
