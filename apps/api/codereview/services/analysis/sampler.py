from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from loguru import logger

from codereview.services.ingestion.github_client import GitHubClient
from codereview.utils.repo_url import RepositoryReference

MAX_SAMPLE_CHARS = 2000


@dataclass
class CodeSample:
    path: str
    content: str
    size: int


class CodeSampler:
    """
    Best-effort collection of file contents for the report prompt.
    A file that cannot be fetched or decoded is logged and left out.
    """

    def __init__(self, github: GitHubClient, max_chars: int = MAX_SAMPLE_CHARS) -> None:
        self.github = github
        self.max_chars = max_chars

    async def sample(
        self,
        ref: RepositoryReference,
        candidate_paths: Sequence[str],
        max_files: int = 10,
    ) -> List[CodeSample]:
        samples: List[CodeSample] = []

        for path in list(candidate_paths)[:max(max_files, 0)]:
            try:
                payload = await self.github.get_file_content(ref.owner, ref.name, path)
                content = self.github.decode_content(payload)
                size = int(payload.get("size") or len(content))
            except Exception as e:
                # keep going; one unreadable file should not sink the review
                logger.warning("Failed to fetch content for {}: {!r}", path, e)
                continue

            samples.append(CodeSample(path=path, content=content[: self.max_chars], size=size))

        logger.info("Sampled {}/{} files from {}", len(samples), min(len(candidate_paths), max_files), ref.full_name)
        return samples
