"""
Structured issue summaries the model must return.

Field names are part of the JSON contract sent to the provider, hence camelCase.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict


class FeatureRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str
    description: str


class BugReport(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str
    description: str
    replicationSteps: str | None
    extensionVersion: str | None
    browsersUsed: str | None


IssueSummary = Union[FeatureRequest, BugReport]


def json_schema(schema: type[BaseModel]) -> dict[str, Any]:
    # extra="forbid" yields additionalProperties: false and every field is
    # required, which is what strict structured output expects.
    return schema.model_json_schema()
