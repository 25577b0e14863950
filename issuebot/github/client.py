"""
Minimal async GitHub REST client (issues only) on top of httpx.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx


GITHUB_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"


class GitHubError(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"GitHub API error {status_code}: {message}")
        self.status_code = status_code


@dataclass
class Issue:
    number: int
    html_url: str
    title: str
    body: str

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Issue":
        return cls(
            number=int(data["number"]),
            html_url=data.get("html_url") or "",
            title=data.get("title") or "",
            body=data.get("body") or "",
        )


class GitHubClient:
    def __init__(self, http: httpx.AsyncClient, token: str, api_url: str = GITHUB_API_URL) -> None:
        self.http = http
        self.api_url = api_url.rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": "forum-issue-bot",
        }

    # ----- Helpers -----
    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        response = await self.http.request(
            method, self.api_url + path, headers=self.headers, json=payload
        )
        if response.is_error:
            try:
                message = response.json().get("message") or response.text
            except ValueError:
                message = response.text
            raise GitHubError(response.status_code, message[:200])
        return response.json()

    # ----- Public APIs -----
    async def create_issue(
        self, owner: str, repo: str, title: str, body: str, labels: list[str]
    ) -> Issue:
        data = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/issues",
            {"title": title, "body": body, "labels": labels},
        )
        return Issue.from_json(data)

    async def update_issue(
        self, owner: str, repo: str, number: int, title: str, body: str, labels: list[str]
    ) -> Issue:
        data = await self._request(
            "PATCH",
            f"/repos/{owner}/{repo}/issues/{int(number)}",
            {"title": title, "body": body, "labels": labels},
        )
        return Issue.from_json(data)

    async def get_issue(self, owner: str, repo: str, number: int) -> Issue:
        data = await self._request("GET", f"/repos/{owner}/{repo}/issues/{int(number)}")
        return Issue.from_json(data)
