from __future__ import annotations

from typing import Optional, Sequence

from loguru import logger

from codereview.core.errors import (
    DuplicateExists,
    InvalidRepositoryUrl,
    UpstreamErrorKind,
    UpstreamUnavailable,
    ValidationFailed,
)
from codereview.db.reviews import ReviewStore
from codereview.schemas.review import RepositoryStats, ReviewRecord
from codereview.services.analysis.repository import RepositoryAnalysis, RepositoryAnalyzer
from codereview.services.analysis.sampler import CodeSampler
from codereview.services.review.models import (
    INVALID_REPOSITORY_TEXT,
    BulkItem,
    BulkReviewResult,
    ItemFailed,
    ItemSaved,
    ReviewBundle,
    ReviewOptions,
    ReviewStatus,
    SingleReviewOutcome,
)
from codereview.services.review.pacing import FixedDelayPacer, Pacer
from codereview.services.review.report import ReportGenerator
from codereview.utils.repo_url import (
    OrganizationPage,
    RepositoryReference,
    UserProfilePage,
    parse_repository,
)

ALREADY_EXISTS_MESSAGE = "Review already exists for this repository"


def _invalid_url_message(err: InvalidRepositoryUrl) -> str:
    c = err.classification
    if isinstance(c, OrganizationPage):
        return (
            f"'{c.name}' is an organization page, not a repository. "
            "Saved as an invalid repository; submit a direct repository link."
        )
    if isinstance(c, UserProfilePage):
        return (
            f"'{c.name}' is a user profile page, not a repository. "
            "Saved as an invalid repository; submit a direct repository link."
        )
    return "Invalid repository URL format. Saved as an invalid repository."


def _upstream_message(err: UpstreamUnavailable) -> str:
    if err.kind is UpstreamErrorKind.NOT_FOUND:
        return "Repository not found or is private. Saved as an invalid repository."
    if err.kind is UpstreamErrorKind.QUOTA_EXCEEDED:
        return "GitHub API rate limit exceeded or access forbidden. Saved as an invalid repository."
    if err.kind is UpstreamErrorKind.NETWORK:
        return "GitHub API is unreachable. Saved as an invalid repository."
    return f"Repository analysis failed ({err.message}). Saved as an invalid repository."


def validate_bulk_items(items: Sequence[BulkItem], max_items: int) -> None:
    if not items:
        raise ValidationFailed("At least one repository is required")
    if len(items) > max_items:
        raise ValidationFailed(f"Maximum {max_items} repositories allowed per bulk request")

    urls = [i.github_url.lower() for i in items]
    if len(set(urls)) != len(urls):
        raise ValidationFailed("Duplicate repository URLs are not allowed")


class ReviewOrchestrator:
    def __init__(
        self,
        store: ReviewStore,
        analyzer: RepositoryAnalyzer,
        sampler: CodeSampler,
        reports: ReportGenerator,
        pacer: Optional[Pacer] = None,
        max_sample_files: int = 10,
        bulk_max_items: int = 50,
    ) -> None:
        self.store = store
        self.analyzer = analyzer
        self.sampler = sampler
        self.reports = reports
        self.pacer = pacer or FixedDelayPacer(1.0)
        self.max_sample_files = max_sample_files
        self.bulk_max_items = bulk_max_items

    # -----------------------------
    # Record builders
    # -----------------------------

    def _degraded_record(
        self,
        github_url: str,
        team_name: Optional[str],
        options: ReviewOptions,
        ref: Optional[RepositoryReference] = None,
    ) -> ReviewRecord:
        return ReviewRecord(
            github_url=github_url,
            repository_owner=ref.owner if ref else None,
            repository_name=ref.name if ref else None,
            team_name=team_name,
            analysis_depth=options.depth,
            include_tests=options.include_tests,
            include_documentation=options.include_documentation,
            full_report=INVALID_REPOSITORY_TEXT,
            summary=INVALID_REPOSITORY_TEXT,
        )

    def _complete_record(
        self,
        github_url: str,
        team_name: Optional[str],
        options: ReviewOptions,
        ref: RepositoryReference,
        analysis: RepositoryAnalysis,
        full_report: str,
        summary: str,
    ) -> ReviewRecord:
        repo = analysis.repository
        return ReviewRecord(
            github_url=github_url,
            repository_owner=ref.owner,
            repository_name=ref.name,
            team_name=team_name,
            repository_language=repo.language,
            repository_description=repo.description,
            analysis_depth=options.depth,
            include_tests=options.include_tests,
            include_documentation=options.include_documentation,
            full_report=full_report,
            summary=summary,
            repository_stats=RepositoryStats(
                stars=repo.stargazers_count,
                forks=repo.forks_count,
                size=repo.size,
                files=analysis.structure.total_files,
                languages=dict(analysis.languages),
            ),
        )

    # -----------------------------
    # Single review
    # -----------------------------

    async def generate_single(
        self,
        github_url: str,
        team_name: Optional[str] = None,
        options: Optional[ReviewOptions] = None,
        force: bool = False,
    ) -> SingleReviewOutcome:
        """
        Classify -> dedup -> analyze -> generate -> persist.

        Unusable URLs and unreachable repositories still leave a (degraded)
        record behind. Generation and store errors propagate.
        """
        options = options or ReviewOptions()
        logger.info("Starting review generation for {}", github_url)

        try:
            ref = parse_repository(github_url)
        except InvalidRepositoryUrl as e:
            message = _invalid_url_message(e)
            logger.warning("{}: {}", github_url, message)
            saved = await self.store.insert(self._degraded_record(github_url, team_name, options))
            return SingleReviewOutcome(ReviewStatus.SAVED_INVALID, saved, message)

        existing = await self.store.find_latest_by_url(github_url)
        if existing and not force:
            logger.info("Review already exists for {} ({})", github_url, existing.id)
            return SingleReviewOutcome(ReviewStatus.ALREADY_EXISTS, existing, ALREADY_EXISTS_MESSAGE)

        try:
            analysis = await self.analyzer.analyze(ref)
            samples = await self.sampler.sample(ref, analysis.code_files, self.max_sample_files)
        except UpstreamUnavailable as e:
            message = _upstream_message(e)
            logger.warning("Analysis of {} failed [{}]: {}", ref.full_name, e.kind.value, e.message)
            saved = await self.store.insert(self._degraded_record(github_url, team_name, options, ref))
            return SingleReviewOutcome(ReviewStatus.SAVED_ANALYSIS_FAILED, saved, message)

        bundle = ReviewBundle(analysis=analysis, code_samples=samples)
        full_report = await self.reports.generate_report(bundle, options)
        summary = await self.reports.generate_summary(full_report)

        record = self._complete_record(github_url, team_name, options, ref, analysis, full_report, summary)
        saved = await self.store.insert(record)
        logger.info("Review generation completed for {} ({})", ref.full_name, saved.id)
        return SingleReviewOutcome(ReviewStatus.COMPLETED, saved, "Code review report generated successfully")

    # -----------------------------
    # Bulk review
    # -----------------------------

    async def run_bulk(self, items: Sequence[BulkItem], options: Optional[ReviewOptions] = None) -> BulkReviewResult:
        """
        Review items one at a time, pausing between them. Every item gets an
        outcome; no exception escapes past the item that raised it.
        """
        validate_bulk_items(items, self.bulk_max_items)
        options = options or ReviewOptions()
        result = BulkReviewResult()

        logger.info("Starting bulk review of {} repositories", len(items))
        for n, item in enumerate(items):
            if n:
                await self.pacer.pause()

            try:
                outcome = await self.generate_single(item.github_url, item.team_name, options)
                if outcome.status is ReviewStatus.ALREADY_EXISTS:
                    raise DuplicateExists(outcome.record.id)
            except DuplicateExists as e:
                logger.info("Skipping {}: {}", item.github_url, e.message)
                result.results.append(ItemFailed(item.github_url, item.team_name, e.message))
                continue
            except Exception as e:
                logger.exception("Bulk item {} failed", item.github_url)
                result.results.append(ItemFailed(item.github_url, item.team_name, str(e) or e.__class__.__name__))
                continue

            note = None if outcome.status is ReviewStatus.COMPLETED else outcome.message
            result.results.append(ItemSaved(item.github_url, item.team_name, outcome.record.id or "", note))

        logger.info(
            "Bulk review finished: {} saved, {} failed",
            result.success_count,
            result.failure_count,
        )
        return result
