"""Tests for best-effort code sampling."""

import base64

import httpx
import pytest

from codereview.core.errors import UpstreamErrorKind, UpstreamUnavailable
from codereview.services.analysis.sampler import MAX_SAMPLE_CHARS, CodeSampler
from codereview.services.ingestion.github_client import GitHubClient
from codereview.utils.repo_url import RepositoryReference

REF = RepositoryReference("acme", "widgets")


def _payload(text: str) -> dict:
    return {
        "type": "file",
        "encoding": "base64",
        "content": base64.b64encode(text.encode()).decode(),
        "size": len(text.encode()),
    }


class ScriptedGitHub(GitHubClient):
    """Serves file payloads from a dict; values that are exceptions are raised."""

    def __init__(self, files):
        super().__init__()
        self.files = files
        self.requested = []

    async def get_file_content(self, owner, repo, path):
        self.requested.append(path)
        value = self.files[path]
        if isinstance(value, Exception):
            raise value
        return value


class TestCodeSampler:
    @pytest.mark.asyncio
    async def test_takes_first_n_in_order(self):
        gh = ScriptedGitHub({p: _payload(p) for p in ["a.py", "b.py", "c.py"]})
        samples = await CodeSampler(gh).sample(REF, ["a.py", "b.py", "c.py"], max_files=2)
        assert [s.path for s in samples] == ["a.py", "b.py"]
        assert gh.requested == ["a.py", "b.py"]

    @pytest.mark.asyncio
    async def test_failure_skips_file_and_continues(self):
        gh = ScriptedGitHub({
            "a.py": _payload("a"),
            "b.py": UpstreamUnavailable("gone", UpstreamErrorKind.NOT_FOUND),
            "c.py": ValueError("Path is not a file: c.py"),
            "d.py": _payload("d"),
        })
        samples = await CodeSampler(gh).sample(REF, ["a.py", "b.py", "c.py", "d.py"], max_files=4)
        assert [s.path for s in samples] == ["a.py", "d.py"]
        assert gh.requested == ["a.py", "b.py", "c.py", "d.py"]

    @pytest.mark.asyncio
    async def test_malformed_payloads_are_skipped(self):
        gh = ScriptedGitHub({
            "a.py": {"type": "file", "encoding": "base64", "content": 12345},
            "b.py": {**_payload("b"), "size": "huge"},
            "c.py": httpx.RemoteProtocolError("peer closed connection"),
            "d.py": _payload("d"),
        })
        samples = await CodeSampler(gh).sample(REF, ["a.py", "b.py", "c.py", "d.py"], max_files=4)
        assert [s.path for s in samples] == ["d.py"]

    @pytest.mark.asyncio
    async def test_content_is_truncated_prefix(self):
        text = "".join(chr(ord("a") + i % 26) for i in range(5000))
        gh = ScriptedGitHub({"big.js": _payload(text)})
        [sample] = await CodeSampler(gh).sample(REF, ["big.js"])
        assert len(sample.content) == MAX_SAMPLE_CHARS
        assert sample.content == text[:MAX_SAMPLE_CHARS]
        assert sample.size == 5000

    @pytest.mark.asyncio
    async def test_short_content_is_kept_whole(self):
        gh = ScriptedGitHub({"s.go": _payload("package main\n")})
        [sample] = await CodeSampler(gh, max_chars=100).sample(REF, ["s.go"])
        assert sample.content == "package main\n"

    @pytest.mark.asyncio
    async def test_no_candidates(self):
        assert await CodeSampler(ScriptedGitHub({})).sample(REF, [], max_files=10) == []

    @pytest.mark.asyncio
    async def test_zero_max_files(self):
        gh = ScriptedGitHub({"a.py": _payload("a")})
        assert await CodeSampler(gh).sample(REF, ["a.py"], max_files=0) == []
        assert gh.requested == []
