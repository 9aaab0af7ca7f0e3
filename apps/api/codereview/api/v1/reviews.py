from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse

from codereview.api.deps import get_orchestrator, get_store
from codereview.core.errors import ReviewNotFound
from codereview.db.reviews import ReviewStore
from codereview.schemas.review import (
    BulkItemResult,
    BulkReviewRequest,
    BulkReviewResponse,
    ExistingReview,
    ExistingReviewResponse,
    GenerateReviewRequest,
    GenerateReviewResponse,
    Pagination,
    ReviewListResponse,
    ReviewOut,
    ReviewPage,
    StatisticsResponse,
)
from codereview.services.review.models import BulkItem, ItemSaved, ReviewOptions, ReviewStatus
from codereview.services.review.orchestrator import ReviewOrchestrator

router = APIRouter(prefix="/reviews", tags=["reviews"])

SAMPLE_CSV = (
    "github_url,team_name\n"
    "https://github.com/owner/repository-one,Team Alpha\n"
    "https://github.com/owner/repository-two,Team Beta\n"
    "https://gitlab.com/owner/repository-three,\n"
)


def _list_response(result: ReviewPage, team_name: str | None = None) -> ReviewListResponse:
    return ReviewListResponse(
        team_name=team_name,
        reviews=[ReviewOut.from_record(r, full=False) for r in result.items],
        pagination=Pagination(
            current_page=result.page,
            total_pages=result.total_pages,
            total_count=result.total_count,
            limit=result.limit,
        ),
    )


@router.post("/generate", status_code=status.HTTP_201_CREATED)
async def generate_review(
    payload: GenerateReviewRequest,
    force: bool = False,
    orchestrator: ReviewOrchestrator = Depends(get_orchestrator),
):
    options = ReviewOptions(
        depth=payload.analysis_depth,
        include_tests=payload.include_tests,
        include_documentation=payload.include_documentation,
    )
    outcome = await orchestrator.generate_single(payload.github_url, payload.team_name, options, force=force)

    if outcome.status is ReviewStatus.ALREADY_EXISTS:
        existing = outcome.record
        body = ExistingReviewResponse(
            status=outcome.status.value,
            message=outcome.message,
            existing_review=ExistingReview(id=existing.id or "", summary=existing.summary, created_at=existing.created_at),
        )
        return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(mode="json"))

    return GenerateReviewResponse(
        status=outcome.status.value,
        message=outcome.message,
        review=ReviewOut.from_record(outcome.record),
    )


@router.post("/bulk", response_model=BulkReviewResponse)
async def generate_bulk_reviews(
    payload: BulkReviewRequest,
    orchestrator: ReviewOrchestrator = Depends(get_orchestrator),
):
    options = ReviewOptions(
        depth=payload.analysis_depth,
        include_tests=payload.include_tests,
        include_documentation=payload.include_documentation,
    )
    items = [BulkItem(github_url=r.github_url, team_name=r.team_name) for r in payload.repos]
    result = await orchestrator.run_bulk(items, options)

    results = []
    for r in result.results:
        if isinstance(r, ItemSaved):
            results.append(BulkItemResult(
                github_url=r.github_url, team_name=r.team_name, success=True, review_id=r.review_id, note=r.note,
            ))
        else:
            results.append(BulkItemResult(
                github_url=r.github_url, team_name=r.team_name, success=False, error=r.reason,
            ))

    return BulkReviewResponse(
        total=len(results),
        success_count=result.success_count,
        failure_count=result.failure_count,
        results=results,
    )


@router.get("/bulk/sample-csv")
async def download_sample_csv():
    return Response(
        content=SAMPLE_CSV,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="bulk-review-sample.csv"'},
    )


@router.get("", response_model=ReviewListResponse)
async def list_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    store: ReviewStore = Depends(get_store),
):
    return _list_response(await store.list_page(page, limit))


@router.get("/stats", response_model=StatisticsResponse)
async def get_statistics(store: ReviewStore = Depends(get_store)):
    return StatisticsResponse(statistics=await store.aggregate_stats())


@router.get("/team/{team_name}", response_model=ReviewListResponse)
async def list_reviews_by_team(
    team_name: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    store: ReviewStore = Depends(get_store),
):
    return _list_response(await store.list_page_by_team(team_name, page, limit), team_name=team_name)


@router.get("/{review_id}")
async def get_review(review_id: str, store: ReviewStore = Depends(get_store)):
    review = await store.get_by_id(review_id)
    if not review:
        raise ReviewNotFound(review_id)
    return {"success": True, "review": ReviewOut.from_record(review)}


@router.delete("/{review_id}")
async def delete_review(review_id: str, store: ReviewStore = Depends(get_store)):
    if not await store.delete(review_id):
        raise ReviewNotFound(review_id)
    return {"success": True, "message": "Review deleted successfully"}
