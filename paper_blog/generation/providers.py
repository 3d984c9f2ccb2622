from __future__ import annotations

import logging
from typing import Optional, Protocol

from openai import OpenAI

from .models import IndexStatus, ProviderResponse
from .prompts import build_user_message

logger = logging.getLogger(__name__)

RESPONSE_COMPLETED = "completed"


class ContentIndex(Protocol):
    def status(self, index_id: str) -> IndexStatus:
        ...


class GenerationProvider(Protocol):
    def generate(self, subject_title: str, index_id: str, instructions: str) -> ProviderResponse:
        ...


class StaticContentIndex:
    """
    Index stub that always reports ready. Keeps the pipeline wired for local
    runs where the source files are not uploaded anywhere.
    """

    def __init__(self, completed: int = 1):
        self.completed = completed

    def status(self, index_id: str) -> IndexStatus:
        return IndexStatus(in_progress=0, completed=self.completed)


class StaticGenerationProvider:
    """
    Returns canned markdown instead of calling a model. Used by the demo
    script and tests.
    """

    def __init__(self, text: Optional[str], status: str = RESPONSE_COMPLETED):
        self.text = text
        self.status = status
        self.calls = 0

    def generate(self, subject_title: str, index_id: str, instructions: str) -> ProviderResponse:
        self.calls += 1
        return ProviderResponse(status=self.status, text=self.text)


class OpenAIVectorStoreIndex:
    """Reads file indexing counts from an OpenAI vector store."""

    def __init__(self, client: OpenAI):
        self._client = client

    def status(self, index_id: str) -> IndexStatus:
        store = self._client.vector_stores.retrieve(index_id)
        counts = store.file_counts
        return IndexStatus(in_progress=counts.in_progress, completed=counts.completed)


class OpenAIResponsesProvider:
    """
    Generates the post with the Responses API. The paper is reached through
    the `file_search` tool over the vector store the caller uploaded it to.
    """

    def __init__(
        self,
        client: OpenAI,
        model: str = "gpt-5.2",
        max_output_tokens: int = 4096,
        reasoning_effort: str = "low",
        verbosity: str = "medium",
    ):
        self._client = client
        self.model = model
        self.max_output_tokens = max_output_tokens
        self.reasoning_effort = reasoning_effort
        self.verbosity = verbosity

    def generate(self, subject_title: str, index_id: str, instructions: str) -> ProviderResponse:
        response = self._client.responses.create(
            model=self.model,
            instructions=instructions,
            input=[{"role": "user", "content": build_user_message(subject_title)}],
            tools=[{"type": "file_search", "vector_store_ids": [index_id]}],
            reasoning={"effort": self.reasoning_effort},
            text={"verbosity": self.verbosity},
            max_output_tokens=self.max_output_tokens,
        )
        logger.info("Model %s finished with status %s", self.model, response.status)
        return ProviderResponse(status=str(response.status), text=response.output_text or None)
