"""Session naming.

A session's display name is derived from its free-text description. The
heuristic namer is local and deterministic; the LLM namer asks an Anthropic
model and falls back to the heuristic when the call fails.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Protocol

import anthropic

logger = logging.getLogger(__name__)

UNTITLED = "Untitled Session"

_CODE_FENCE = re.compile(r"^```[\w-]*\s*\n(.*?)\n?```$", re.DOTALL)

NAMING_SYSTEM_PROMPT = (
    "You are an expert at generating short, impactful names. Extract only the "
    "most essential words from the given description to form a name that is 2 "
    "to 3 words long. Be concise, clear, and relevant. Return your response as "
    "a JSON object with a 'name' field containing the generated name."
)


class LLMError(Exception):
    """LLM call failed."""
    pass


class Namer(Protocol):
    def name_for(self, description: str) -> str:
        ...


@dataclass
class HeuristicNamer:
    """First few words of the description, title cased."""

    max_words: int = 3

    def name_for(self, description: str) -> str:
        words = re.findall(r"[\w'-]+", description)
        if not words:
            return UNTITLED
        return " ".join(w[:1].upper() + w[1:] for w in words[: self.max_words])


@dataclass
class LLMNamer:
    """
    Anthropic-backed namer.

    Low temperature: names should be stable for the same description.
    """

    model: str = "claude-3-5-haiku-latest"
    api_key: str | None = None
    base_url: str | None = None
    temperature: float = 0.2
    max_tokens: int = 250
    fallback: HeuristicNamer = field(default_factory=HeuristicNamer)
    _client: anthropic.Anthropic | None = field(default=None, repr=False)

    def __post_init__(self):
        """Initialize API key from environment if not provided."""
        if self.api_key is None:
            self.api_key = os.environ.get("ANTHROPIC_API_KEY") or os.environ.get("ANTHROPIC_AUTH_TOKEN")
        if self.base_url is None:
            self.base_url = os.environ.get("ANTHROPIC_BASE_URL")

    def _get_client(self) -> anthropic.Anthropic:
        """Get or create Anthropic client."""
        if self._client is None:
            if not self.api_key:
                raise LLMError("ANTHROPIC_API_KEY not set")
            client_kwargs: dict[str, Any] = {"api_key": self.api_key}
            if self.base_url:
                client_kwargs["base_url"] = self.base_url
            self._client = anthropic.Anthropic(**client_kwargs)
        return self._client

    def name_for(self, description: str) -> str:
        if not description or not description.strip():
            return UNTITLED
        try:
            raw = self._complete(description)
        except LLMError as e:
            logger.warning(f"Session naming via LLM failed, using heuristic: {e}")
            return self.fallback.name_for(description)
        return parse_name(raw) or self.fallback.name_for(description)

    def _complete(self, description: str) -> str:
        prompt = (
            "Generate a 2-3 word name by extracting the most essential words "
            f"from this description: {description}"
        )
        try:
            response = self._get_client().messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=NAMING_SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise LLMError(f"Anthropic API error: {e}") from e

        content = ""
        for block in response.content:
            if block.type == "text":
                content += block.text
        return content


def parse_name(raw: str) -> str:
    """
    Extract the name from a model reply.

    Expects ``{"name": ...}``, optionally inside a markdown code fence;
    anything else is used verbatim (stripped).
    """
    text = raw.strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1).strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(data, dict) and isinstance(data.get("name"), str) and data["name"].strip():
        return data["name"].strip()
    return text


__all__ = ["HeuristicNamer", "LLMError", "LLMNamer", "Namer", "UNTITLED", "parse_name"]
