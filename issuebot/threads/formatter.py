"""
Issue title/body/label rendering.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from issuebot.llm.schemas import BugReport, IssueSummary


@dataclass
class IssueDraft:
    title: str
    body: str
    labels: list[str] = field(default_factory=list)


def is_feature_channel(name: str) -> bool:
    return "feature" in name.lower()


def choose_labels(
    channel_name: str,
    provenance: Iterable[str],
    feature_label: str = "enhancement",
    bug_label: str = "bug",
) -> list[str]:
    kind = feature_label if is_feature_channel(channel_name) else bug_label
    return [*provenance, kind]


def format_bug_report(summary: BugReport) -> str:
    parts = [f"### Description\n\n{summary.description}"]
    for title, body in (
        ("How to replicate the issue", summary.replicationSteps),
        ("Extension version", summary.extensionVersion),
        ("Browser(s) used", summary.browsersUsed),
    ):
        if body:
            parts.append(f"### {title}\n\n{body}")
    return "\n\n".join(parts)


def format_summary(summary: IssueSummary) -> IssueDraft:
    if isinstance(summary, BugReport):
        return IssueDraft(title=summary.title, body=format_bug_report(summary))
    return IssueDraft(title=summary.title, body=summary.description)


def append_thread_link(body: str, thread_url: str) -> str:
    return f"{body}\n\nTracked in {thread_url}"
