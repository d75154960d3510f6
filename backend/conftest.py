# conftest.py
# Shared fakes for the test modules that sit beside the code in backend/.

import asyncio
from typing import Optional

import pytest

from roots.llm import LLMClient, LLMResponse


class FakeLLMClient(LLMClient):
    """Returns canned responses and remembers every prompt it was sent"""

    def __init__(
        self,
        responses: Optional[list] = None,
        supports_structured_output: bool = False,
        gate: Optional[asyncio.Event] = None
    ):
        self.responses = list(responses or [])
        self.supports_structured_output = supports_structured_output
        self.gate = gate
        self.calls: list[dict] = []

    async def generate(self, prompt, *, grounded=True, response_schema=None):
        self.calls.append({
            "prompt": prompt,
            "grounded": grounded,
            "response_schema": response_schema
        })
        if self.gate is not None:
            await self.gate.wait()
        response = self.responses.pop(0) if self.responses else LLMResponse(text="")
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return LLMResponse(text=response)
        return response


def recipe_block(name: str, **fields) -> str:
    lines = ["[RECIPE_START]", f"NAME: {name}"]
    for prefix, value in fields.items():
        lines.append(f"{prefix.upper()}: {value}")
    lines.append("[RECIPE_END]")
    return "\n".join(lines)


@pytest.fixture
def fake_client():
    return FakeLLMClient()
