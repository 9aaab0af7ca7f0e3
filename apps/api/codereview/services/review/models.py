from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from codereview.schemas.review import AnalysisDepth, ReviewRecord
from codereview.services.analysis.repository import RepositoryAnalysis
from codereview.services.analysis.sampler import CodeSample

INVALID_REPOSITORY_TEXT = "Not a valid repository. No review could be generated for this URL."


@dataclass(frozen=True)
class ReviewOptions:
    depth: AnalysisDepth = AnalysisDepth.DETAILED
    include_tests: bool = True
    include_documentation: bool = True


@dataclass
class ReviewBundle:
    analysis: RepositoryAnalysis
    code_samples: List[CodeSample] = field(default_factory=list)


# -----------------------------
# Single review outcome
# -----------------------------

class ReviewStatus(str, Enum):
    SAVED_INVALID = "saved_invalid"
    ALREADY_EXISTS = "already_exists"
    SAVED_ANALYSIS_FAILED = "saved_analysis_failed"
    COMPLETED = "completed"


@dataclass
class SingleReviewOutcome:
    status: ReviewStatus
    record: ReviewRecord
    message: str

    @property
    def created(self) -> bool:
        return self.status is not ReviewStatus.ALREADY_EXISTS


# -----------------------------
# Bulk review
# -----------------------------

@dataclass(frozen=True)
class BulkItem:
    github_url: str
    team_name: Optional[str] = None


@dataclass(frozen=True)
class ItemSaved:
    github_url: str
    team_name: Optional[str]
    review_id: str
    note: Optional[str] = None


@dataclass(frozen=True)
class ItemFailed:
    github_url: str
    team_name: Optional[str]
    reason: str


ItemOutcome = Union[ItemSaved, ItemFailed]


@dataclass
class BulkReviewResult:
    results: List[ItemOutcome] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if isinstance(r, ItemSaved))

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if isinstance(r, ItemFailed))
