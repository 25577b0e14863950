"""
Summary generation: thread transcript (+ existing issue) → structured summary.

Providers only turn (system, inputs, schema) into raw text; parsing and
validation happen here so every provider yields the same tagged result.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from .errors import LLMProviderError
from .ollama_service import OllamaService
from .schemas import IssueSummary, json_schema


_STYLE_RULES = (
    "Summarize the following Discord thread into a concise GitHub issue description. "
    "Include main problem, relevant details, and any steps to reproduce if mentioned. "
    "Don't include details that became irrelevant later. Ignore greetings and small talk. "
    "Format description as paragraphs if it helps readability. "
    "Don't use markdown headers. Don't duplicate information in output sections."
)

CREATE_INSTRUCTIONS = _STYLE_RULES

UPDATE_INSTRUCTIONS = (
    "You are updating an existing GitHub issue. Provided is the existing title and description, "
    "followed by Discord thread content. Interpret the existing issue description according to "
    "the output schema. Only change title or description if there is significant new or "
    "corrected information. If the existing title and description are still accurate, leave "
    "them unchanged. If the issue includes a Discord link or a 'Tracked in' line, remove it. "
    + _STYLE_RULES
)


@dataclass
class GenerationResult:
    """Either a validated summary or the reason the model output was rejected."""

    summary: IssueSummary | None = None
    error: str | None = None
    raw: str = ""

    @property
    def ok(self) -> bool:
        return self.summary is not None


class CompletionProvider(Protocol):
    async def complete(
        self, system: str, inputs: list[str], schema: dict[str, Any], temperature: float
    ) -> str: ...


# ── Providers ────────────────────────────────────────────────────────────────

class OpenAIProvider:
    def __init__(self, client: AsyncOpenAI, model: str):
        self.client = client
        self.model = model

    async def complete(
        self, system: str, inputs: list[str], schema: dict[str, Any], temperature: float
    ) -> str:
        response = await self.client.responses.create(
            model=self.model,
            input=[
                {"role": "system", "content": system},
                *({"role": "user", "content": text} for text in inputs),
            ],
            text={
                "format": {
                    "type": "json_schema",
                    "name": "issue",
                    "schema": schema,
                    "strict": True,
                }
            },
            temperature=temperature,
        )
        return response.output_text


class OllamaProvider:
    def __init__(self, service: OllamaService, model: str):
        self.service = service
        self.model = model

    async def complete(
        self, system: str, inputs: list[str], schema: dict[str, Any], temperature: float
    ) -> str:
        messages = [{"role": "system", "content": system}]
        messages += [{"role": "user", "content": text} for text in inputs]
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None,
            lambda: self.service.run(messages, self.model, schema, temperature),
        )


# ── Parsing ──────────────────────────────────────────────────────────────────

def parse_summary(raw: str, schema: type[BaseModel]) -> GenerationResult:
    try:
        summary = schema.model_validate_json(raw)
    except ValidationError as e:
        return GenerationResult(error=f"{schema.__name__}: {e.error_count()} validation error(s): {e}", raw=raw)
    return GenerationResult(summary=summary, raw=raw)


class SummaryGenerator:
    def __init__(self, provider: CompletionProvider, temperature: float = 0.3):
        self.provider = provider
        self.temperature = temperature

    async def generate_new(self, transcript: str, schema: type[BaseModel]) -> GenerationResult:
        return await self._run(CREATE_INSTRUCTIONS, [transcript], schema)

    async def update_existing(
        self, transcript: str, title: str, body: str, schema: type[BaseModel]
    ) -> GenerationResult:
        inputs = [
            f"GitHub Issue:\n\n{title}\n{body}",
            f"Discord Thread:\n{transcript}",
        ]
        return await self._run(UPDATE_INSTRUCTIONS, inputs, schema)

    async def _run(self, system: str, inputs: list[str], schema: type[BaseModel]) -> GenerationResult:
        raw = await self.provider.complete(system, inputs, json_schema(schema), self.temperature)
        result = parse_summary(raw, schema)
        if not result.ok:
            logging.warning("Model output rejected: %s", result.error)
        return result


def build_generator(settings: Any) -> SummaryGenerator:
    provider_cfg = settings.providers.get(settings.provider) or {}

    if settings.provider == "openai":
        kwargs = {k: provider_cfg[k] for k in ("base_url", "api_key") if provider_cfg.get(k)}
        provider: CompletionProvider = OpenAIProvider(AsyncOpenAI(**kwargs), settings.model_name)
    elif settings.provider == "ollama":
        if "base_url" not in provider_cfg:
            raise LLMProviderError("providers.ollama.base_url is required for ollama models")
        provider = OllamaProvider(OllamaService(host=provider_cfg["base_url"]), settings.model_name)
    else:
        raise LLMProviderError(f"Unsupported provider: {settings.provider}")

    logging.info(f"Summary generator: {settings.model} (temperature {settings.temperature})")
    return SummaryGenerator(provider, temperature=settings.temperature)
