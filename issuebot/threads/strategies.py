"""
Summarization strategies: how a thread becomes an issue draft.

- plain: title is the thread name, body is the readable transcript; the
  thread may be renamed from the command text.
- ai:    title/body come from the model; the body links back to the thread
  and updates start from the existing issue text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import BaseModel

from issuebot.github.client import GitHubClient
from issuebot.llm.errors import SummaryValidationError
from issuebot.llm.generator import GenerationResult, SummaryGenerator
from issuebot.llm.schemas import BugReport, FeatureRequest, IssueSummary

from .formatter import IssueDraft, append_thread_link, choose_labels, format_summary, is_feature_channel
from .summarizer import MessageFilter, render_llm_transcript, render_plain_transcript


class SummaryStrategy(Protocol):
    name: str
    renames_thread: bool
    notice_delay: float

    def message_filter(self, bot_user_id: int | None, owner_id: int) -> MessageFilter: ...

    async def build_new(self, thread: Any, messages: list[Any], msg_filter: MessageFilter) -> IssueDraft: ...

    async def build_update(
        self, thread: Any, messages: list[Any], msg_filter: MessageFilter, issue_number: int
    ) -> IssueDraft: ...


@dataclass
class _LabelledStrategy:
    provenance: tuple[str, ...] = ("discord",)
    feature_label: str = "enhancement"
    bug_label: str = "bug"

    def labels_for(self, thread: Any) -> list[str]:
        return choose_labels(thread.parent.name, self.provenance, self.feature_label, self.bug_label)


@dataclass
class PlainStrategy(_LabelledStrategy):
    notice_delay: float = 10
    name: str = field(default="plain", init=False)
    renames_thread: bool = field(default=True, init=False)

    def message_filter(self, bot_user_id: int | None, owner_id: int) -> MessageFilter:
        return MessageFilter(bot_user_id, owner_id, skip_tracking_markers=True, skip_owner_commands=True)

    async def build_new(self, thread: Any, messages: list[Any], msg_filter: MessageFilter) -> IssueDraft:
        body = render_plain_transcript(thread, messages, msg_filter)
        return IssueDraft(title=thread.name, body=body, labels=self.labels_for(thread))

    async def build_update(
        self, thread: Any, messages: list[Any], msg_filter: MessageFilter, issue_number: int
    ) -> IssueDraft:
        return await self.build_new(thread, messages, msg_filter)


@dataclass
class AIStrategy(_LabelledStrategy):
    generator: SummaryGenerator | None = None
    github: GitHubClient | None = None
    repo_owner: str = ""
    repo_name: str = ""
    provenance: tuple[str, ...] = ("discord", "auto-generated")
    notice_delay: float = 60
    name: str = field(default="ai", init=False)
    renames_thread: bool = field(default=False, init=False)

    def message_filter(self, bot_user_id: int | None, owner_id: int) -> MessageFilter:
        # The model sees every non-bot message, commands included.
        return MessageFilter(bot_user_id, owner_id, skip_tracking_markers=False, skip_owner_commands=False)

    def schema_for(self, thread: Any) -> type[BaseModel]:
        return FeatureRequest if is_feature_channel(thread.parent.name) else BugReport

    async def build_new(self, thread: Any, messages: list[Any], msg_filter: MessageFilter) -> IssueDraft:
        transcript = render_llm_transcript(thread, messages, msg_filter)
        result = await self.generator.generate_new(transcript, self.schema_for(thread))
        return self._draft(thread, _require(result))

    async def build_update(
        self, thread: Any, messages: list[Any], msg_filter: MessageFilter, issue_number: int
    ) -> IssueDraft:
        existing = await self.github.get_issue(self.repo_owner, self.repo_name, issue_number)
        transcript = render_llm_transcript(thread, messages, msg_filter)
        result = await self.generator.update_existing(
            transcript, existing.title, existing.body, self.schema_for(thread)
        )
        return self._draft(thread, _require(result))

    def _draft(self, thread: Any, summary: IssueSummary) -> IssueDraft:
        draft = format_summary(summary)
        draft.body = append_thread_link(draft.body, thread.jump_url)
        draft.labels = self.labels_for(thread)
        return draft


def _require(result: GenerationResult) -> IssueSummary:
    if not result.ok:
        raise SummaryValidationError(result.error or "model output rejected", raw=result.raw)
    return result.summary


def build_strategy(
    settings: Any, github: GitHubClient, generator: SummaryGenerator | None = None
) -> SummaryStrategy:
    labels = dict(
        provenance=settings.provenance_labels,
        feature_label=settings.feature_label,
        bug_label=settings.bug_label,
        notice_delay=settings.notice_delay_seconds,
    )
    if settings.summarizer == "plain":
        return PlainStrategy(**labels)
    return AIStrategy(
        generator=generator,
        github=github,
        repo_owner=settings.repo_owner,
        repo_name=settings.repo_name,
        **labels,
    )
