"""
LLM Module for the lead qualification bot.

This module handles:
- Text-generation provider abstraction (OpenAI, Bedrock)
- Prompt templates for assisted lead classification
"""

from .prompt_templates import PromptTemplates, PromptType

__all__ = [
    "PromptTemplates",
    "PromptType",
]
