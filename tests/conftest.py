"""Shared fixtures: a deterministic token counter and scripted collaborators."""

from typing import Callable, Optional

import pytest

from tooldeck.plugins.arithmetic import ArithmeticPlugin
from tooldeck.providers.base import Embedder, ModelClient
from tooldeck.providers.response import ModelRequest, ModelResponse
from tooldeck.tools.catalog import Catalog


class WordCounter:
    """One token per whitespace-separated word."""

    def count(self, text: str) -> int:
        return len(text.split())


class ScriptedModel(ModelClient):
    """Answers each request by looking up the user prompt in ``script``.

    A script value is a ModelResponse, an exception to raise, or a callable
    taking the prompt and returning either.
    """

    def __init__(self, script: dict, default: Optional[Callable] = None):
        self.script = script
        self.default = default
        self.requests: list[ModelRequest] = []

    @property
    def prompts(self) -> list[str]:
        return [r.messages[-1]["content"] for r in self.requests]

    async def complete(self, request: ModelRequest) -> ModelResponse:
        self.requests.append(request)
        prompt = request.messages[-1]["content"]
        if prompt in self.script:
            answer = self.script[prompt]
        elif self.default is not None:
            answer = self.default
        else:
            raise AssertionError(f"Unexpected prompt: {prompt}")
        if callable(answer) and not isinstance(answer, ModelResponse):
            answer = answer(prompt)
        if isinstance(answer, BaseException):
            raise answer
        return answer


class KeywordEmbedder(Embedder):
    """Embeds text as a fixed vector chosen by the first matching keyword."""

    def __init__(self, vectors: dict, fallback: tuple):
        self.vectors = vectors
        self.fallback = fallback
        self.texts: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.texts.append(text)
        for keyword, vector in self.vectors.items():
            if keyword in text.lower():
                return list(vector)
        return list(self.fallback)


@pytest.fixture
def counter():
    return WordCounter()


@pytest.fixture
def arithmetic_catalog(counter):
    return Catalog(ArithmeticPlugin().get_functions(counter)).freeze()


@pytest.fixture
def scripted_model():
    return ScriptedModel


@pytest.fixture
def keyword_embedder():
    return KeywordEmbedder
