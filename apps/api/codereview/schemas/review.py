from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, Field, StringConstraints


class AnalysisDepth(str, Enum):
    BASIC = "basic"
    DETAILED = "detailed"
    COMPREHENSIVE = "comprehensive"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# -----------------------------
# Persisted record
# -----------------------------

class RepositoryStats(BaseModel):
    stars: int = 0
    forks: int = 0
    size: int = 0
    files: int = 0
    languages: Dict[str, int] = Field(default_factory=dict)


class ReviewRecord(BaseModel):
    id: Optional[str] = None  # assigned by the store
    github_url: str
    repository_owner: Optional[str] = None
    repository_name: Optional[str] = None
    team_name: Optional[str] = None
    repository_language: Optional[str] = None
    repository_description: Optional[str] = None
    analysis_depth: AnalysisDepth = AnalysisDepth.DETAILED
    include_tests: bool = True
    include_documentation: bool = True
    full_report: str
    summary: str
    repository_stats: Optional[RepositoryStats] = None
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def repository_full_name(self) -> Optional[str]:
        if self.repository_owner and self.repository_name:
            return f"{self.repository_owner}/{self.repository_name}"
        return None


class ReviewPage(BaseModel):
    items: List[ReviewRecord]
    total_count: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total_count // self.limit)


class ReviewStatistics(BaseModel):
    total_reviews: int
    recent_reviews: int
    language_statistics: Dict[str, int]


# -----------------------------
# Requests
# -----------------------------

def _clean_team_name(v: str) -> Optional[str]:
    v = v.strip()
    return v or None


TeamName = Annotated[str, StringConstraints(max_length=100), AfterValidator(_clean_team_name)]


class GenerateReviewRequest(BaseModel):
    github_url: str = Field(..., min_length=1, description="Repository URL (GitHub, GitLab or Bitbucket)")
    team_name: Optional[TeamName] = None
    analysis_depth: AnalysisDepth = AnalysisDepth.DETAILED
    include_tests: bool = True
    include_documentation: bool = True


class BulkRepoItem(BaseModel):
    github_url: str = Field(..., min_length=1)
    team_name: Optional[TeamName] = None


class BulkReviewRequest(BaseModel):
    repos: List[BulkRepoItem] = Field(..., min_length=1)
    analysis_depth: AnalysisDepth = AnalysisDepth.DETAILED
    include_tests: bool = True
    include_documentation: bool = True


# -----------------------------
# Responses
# -----------------------------

class ReviewOut(BaseModel):
    id: str
    github_url: str
    repository_name: Optional[str] = None
    team_name: Optional[str] = None
    repository_language: Optional[str] = None
    repository_description: Optional[str] = None
    summary: str
    full_report: Optional[str] = None
    analysis_depth: AnalysisDepth
    repository_stats: Optional[RepositoryStats] = None
    created_at: datetime

    @classmethod
    def from_record(cls, record: ReviewRecord, full: bool = True) -> "ReviewOut":
        return cls(
            id=record.id or "",
            github_url=record.github_url,
            repository_name=record.repository_full_name,
            team_name=record.team_name,
            repository_language=record.repository_language,
            repository_description=record.repository_description,
            summary=record.summary,
            full_report=record.full_report if full else None,
            analysis_depth=record.analysis_depth,
            repository_stats=record.repository_stats if full else None,
            created_at=record.created_at,
        )


class GenerateReviewResponse(BaseModel):
    success: bool = True
    status: str
    message: str
    review: ReviewOut


class ExistingReview(BaseModel):
    id: str
    summary: str
    created_at: datetime


class ExistingReviewResponse(BaseModel):
    success: bool = True
    status: str
    message: str
    existing_review: ExistingReview
    hint: str = "Add ?force=true to generate a new review"


class BulkItemResult(BaseModel):
    github_url: str
    team_name: Optional[str] = None
    success: bool
    review_id: Optional[str] = None
    note: Optional[str] = None
    error: Optional[str] = None


class BulkReviewResponse(BaseModel):
    success: bool = True
    total: int
    success_count: int
    failure_count: int
    results: List[BulkItemResult]


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_count: int
    limit: int


class ReviewListResponse(BaseModel):
    success: bool = True
    team_name: Optional[str] = None
    reviews: List[ReviewOut]
    pagination: Pagination


class StatisticsResponse(BaseModel):
    success: bool = True
    statistics: ReviewStatistics
