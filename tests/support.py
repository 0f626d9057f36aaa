"""Test doubles and reply scripts shared across test modules."""

import asyncio

HOT_REPLIES = [
    "Koramangala, Bangalore",
    "2BHK flat for investment",
    "around 80L",
    "yes, available this week",
]

GIBBERISH_REPLIES = ["asdf", "qwerty123", "zzzzzzzz"]


class FakeProvider:
    """Text-generation stand-in with a canned answer, error or delay."""

    def __init__(self, response=None, error=None, delay=0.0):
        self.response = response
        self.error = error
        self.delay = delay
        self.calls = []

    async def agenerate(self, prompt, system=None):
        self.calls.append((prompt, system))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.response
