from __future__ import annotations

import asyncio
import posixpath
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from loguru import logger

from codereview.core.errors import UpstreamErrorKind, UpstreamUnavailable
from codereview.services.ingestion.github_client import GitHubClient
from codereview.utils.repo_url import RepositoryReference


# -----------------------------
# Tables
# -----------------------------

CODE_EXTENSIONS: Dict[str, str] = {
    ".js": "JavaScript",
    ".ts": "TypeScript",
    ".py": "Python",
    ".java": "Java",
    ".cpp": "C++",
    ".c": "C",
    ".cs": "C#",
    ".php": "PHP",
    ".rb": "Ruby",
    ".go": "Go",
    ".rs": "Rust",
    ".swift": "Swift",
    ".kt": "Kotlin",
}


# -----------------------------
# Types
# -----------------------------

class TreeEntryKind(str, Enum):
    FILE = "blob"
    DIRECTORY = "tree"


@dataclass(frozen=True)
class TreeEntry:
    path: str
    kind: Optional[TreeEntryKind]  # None for entries that are neither (submodules)

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "TreeEntry":
        try:
            kind: Optional[TreeEntryKind] = TreeEntryKind(item.get("type"))
        except ValueError:
            kind = None
        return cls(path=item["path"], kind=kind)


@dataclass
class RepositoryMetadata:
    name: str
    description: Optional[str] = None
    language: Optional[str] = None
    stargazers_count: int = 0
    forks_count: int = 0
    size: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    topics: List[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RepositoryMetadata":
        return cls(
            name=data["name"],
            description=data.get("description"),
            language=data.get("language"),
            stargazers_count=data.get("stargazers_count") or 0,
            forks_count=data.get("forks_count") or 0,
            size=data.get("size") or 0,
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
            topics=list(data.get("topics") or []),
        )


@dataclass
class RepositoryStructure:
    total_files: int = 0
    files: int = 0
    directories: int = 0
    truncated: bool = False


@dataclass
class ImportantFiles:
    readme: Optional[str] = None
    package_json: Optional[str] = None
    dockerfile: Optional[str] = None
    gitignore: Optional[str] = None


@dataclass
class RepositoryAnalysis:
    repository: RepositoryMetadata
    structure: RepositoryStructure
    languages: Dict[str, int] = field(default_factory=dict)
    important_files: ImportantFiles = field(default_factory=ImportantFiles)
    code_files: List[str] = field(default_factory=list)


# -----------------------------
# Tree analysis
# -----------------------------

def language_for(path: str) -> Optional[str]:
    ext = posixpath.splitext(path)[1]
    return CODE_EXTENSIONS.get(ext)


def _mark_important(files: ImportantFiles, path: str) -> None:
    name = path.lower()
    if "readme" in name:
        files.readme = path
    elif name == "package.json":
        files.package_json = path
    elif name == "dockerfile":
        files.dockerfile = path
    elif name == ".gitignore":
        files.gitignore = path


def analyze_tree(
    metadata: RepositoryMetadata,
    entries: List[TreeEntry],
    truncated: bool = False,
) -> RepositoryAnalysis:
    """
    Pure part of the analysis: counts, per-language totals, marker files
    and candidate code files (tree order preserved).
    """
    analysis = RepositoryAnalysis(
        repository=metadata,
        structure=RepositoryStructure(
            total_files=len(entries),
            files=sum(1 for e in entries if e.kind is TreeEntryKind.FILE),
            directories=sum(1 for e in entries if e.kind is TreeEntryKind.DIRECTORY),
            truncated=truncated,
        ),
    )

    for entry in entries:
        if entry.kind is not TreeEntryKind.FILE:
            continue

        language = language_for(entry.path)
        if language:
            analysis.languages[language] = analysis.languages.get(language, 0) + 1
            analysis.code_files.append(entry.path)

        _mark_important(analysis.important_files, entry.path)

    return analysis


# -----------------------------
# Analyzer
# -----------------------------

class RepositoryAnalyzer:
    def __init__(self, github: GitHubClient) -> None:
        self.github = github

    async def analyze(self, ref: RepositoryReference) -> RepositoryAnalysis:
        logger.info("Analyzing repository {}", ref.full_name)

        # both fetches always run to completion; the first failure wins
        repo_info, tree = await asyncio.gather(
            self.github.get_repo(ref.owner, ref.name),
            self.github.get_tree(ref.owner, ref.name),
            return_exceptions=True,
        )
        for res in (repo_info, tree):
            if isinstance(res, BaseException):
                raise res

        try:
            metadata = RepositoryMetadata.from_api(repo_info)
            entries = [TreeEntry.from_api(it) for it in tree.get("tree", [])]
            truncated = bool(tree.get("truncated", False))
        except (KeyError, TypeError, AttributeError) as e:
            raise UpstreamUnavailable(
                f"Unexpected GitHub payload for {ref.full_name}: {e!r}",
                UpstreamErrorKind.BAD_RESPONSE,
            ) from e

        if truncated:
            logger.warning("Tree listing for {} was truncated upstream", ref.full_name)

        analysis = analyze_tree(metadata, entries, truncated=truncated)
        logger.info(
            "Analyzed {}: {} entries, {} code files",
            ref.full_name,
            analysis.structure.total_files,
            len(analysis.code_files),
        )
        return analysis
