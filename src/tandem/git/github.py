# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Opens pull requests through the GitHub REST API."""

from typing import Any, Protocol, runtime_checkable

import httpx


@runtime_checkable
class GitHostingClient(Protocol):
    """Hosting-side half of the git integration."""

    async def create_pull_request(
        self,
        repository: str,
        *,
        head: str,
        base: str,
        title: str,
        body: str,
    ) -> dict[str, Any]:
        """Open a pull request. Returns at least html_url and number."""
        ...

    async def aclose(self) -> None: ...


class GitHubClient:
    """Minimal GitHub v3 client. HTTP errors propagate as httpx exceptions."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
        )
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def aclose(self) -> None:
        await self._client.aclose()

    async def create_pull_request(
        self,
        repository: str,
        *,
        head: str,
        base: str,
        title: str,
        body: str,
    ) -> dict[str, Any]:
        resp = await self._client.post(
            f"/repos/{repository}/pulls",
            json={"title": title, "head": head, "base": base, "body": body},
            headers=self._headers,
        )
        resp.raise_for_status()
        return resp.json()
