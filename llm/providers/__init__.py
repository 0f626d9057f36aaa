"""
LLM Provider implementations.
"""

from .bedrock import BedrockProvider
from .openai_provider import OpenAIProvider

__all__ = ["BedrockProvider", "OpenAIProvider", "build_provider"]


def build_provider(settings):
    """Create the text-generation provider selected in settings."""
    if settings.is_bedrock:
        return BedrockProvider(
            model_id=settings.bedrock_llm_model_id,
            region=settings.aws_region,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            timeout=settings.classification_timeout_seconds,
        )
    return OpenAIProvider(
        api_key=settings.openai_api_key,
        model_id=settings.openai_llm_model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        timeout=settings.classification_timeout_seconds,
    )
