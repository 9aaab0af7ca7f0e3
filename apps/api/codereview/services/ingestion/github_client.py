from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from codereview.core.errors import UpstreamErrorKind, UpstreamUnavailable


@dataclass
class GitHubRateLimit:
    remaining: Optional[int]
    reset_epoch: Optional[int]


class GitHubClient:
    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
    ) -> None:
        self.base = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "code-review-bot/0.1",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _rate_limit(self, resp: httpx.Response) -> GitHubRateLimit:
        def _to_int(v: Optional[str]) -> Optional[int]:
            try:
                return int(v) if v is not None else None
            except ValueError:
                return None

        remaining = _to_int(resp.headers.get("x-ratelimit-remaining"))
        reset = _to_int(resp.headers.get("x-ratelimit-reset"))
        return GitHubRateLimit(remaining=remaining, reset_epoch=reset)

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(url, headers=self._headers(), params=params)
        except httpx.TransportError as e:
            raise UpstreamUnavailable(
                f"GitHub API unreachable: {e.__class__.__name__}", UpstreamErrorKind.NETWORK
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # request could not be built or the body could not be decoded
            raise UpstreamUnavailable(
                f"GitHub API request failed: {e.__class__.__name__}", UpstreamErrorKind.BAD_RESPONSE
            ) from e

        if resp.status_code == 404:
            raise UpstreamUnavailable("Repository not found or is private", UpstreamErrorKind.NOT_FOUND)

        if resp.status_code in (403, 429):
            rl = self._rate_limit(resp)
            raise UpstreamUnavailable(
                f"GitHub rate limit exceeded or access forbidden. status={resp.status_code} "
                f"remaining={rl.remaining} reset={rl.reset_epoch}",
                UpstreamErrorKind.QUOTA_EXCEEDED,
            )

        if resp.status_code >= 400:
            raise UpstreamUnavailable(
                f"GitHub API error status={resp.status_code} body={resp.text[:300]}",
                UpstreamErrorKind.BAD_RESPONSE,
            )

        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamUnavailable("GitHub API returned invalid JSON", UpstreamErrorKind.BAD_RESPONSE) from e

    async def get_repo(self, owner: str, repo: str) -> Dict[str, Any]:
        return await self._get(f"/repos/{owner}/{repo}")

    async def get_tree(self, owner: str, repo: str, ref: str = "HEAD") -> Dict[str, Any]:
        # recursive=1 returns the whole tree in one listing (may be truncated upstream)
        return await self._get(f"/repos/{owner}/{repo}/git/trees/{ref}", params={"recursive": "1"})

    async def get_file_content(self, owner: str, repo: str, path: str) -> Dict[str, Any]:
        data = await self._get(f"/repos/{owner}/{repo}/contents/{quote(path)}")
        if not isinstance(data, dict) or data.get("type") != "file":
            raise ValueError(f"Path is not a file: {path}")
        return data

    @staticmethod
    def decode_content(payload: dict) -> str:
        # GitHub returns base64 with newlines sometimes
        enc = payload.get("encoding")
        content = payload.get("content") or ""
        if enc != "base64":
            return content
        raw = base64.b64decode(content.replace("\n", ""))
        return raw.decode("utf-8", errors="replace")
