"""
API Routes for the lead qualification bot.
"""

from . import chat, leads

__all__ = ["chat", "leads"]
