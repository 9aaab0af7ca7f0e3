from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from codereview.core.config import Settings, settings as default_settings
from codereview.core.errors import ReviewServiceError
from codereview.core.logging import setup_logging
from codereview.db.mongo import create_client, get_db
from codereview.db.reviews import MongoReviewStore
from codereview.services.analysis.repository import RepositoryAnalyzer
from codereview.services.analysis.sampler import CodeSampler
from codereview.services.ingestion.github_client import GitHubClient
from codereview.services.llm.factory import build_llm
from codereview.services.review.orchestrator import ReviewOrchestrator
from codereview.services.review.pacing import FixedDelayPacer
from codereview.services.review.report import ReportGenerator

from codereview.api.v1.health import router as health_router
from codereview.api.v1.reviews import router as reviews_router

logger = setup_logging(default_settings.LOG_LEVEL)

ENDPOINTS = {
    "POST /api/v1/reviews/generate": "Generate a code review report from a repository URL",
    "POST /api/v1/reviews/bulk": "Generate multiple code review reports (bulk upload)",
    "GET /api/v1/reviews/bulk/sample-csv": "Download sample CSV for bulk upload",
    "GET /api/v1/reviews": "List code reviews",
    "GET /api/v1/reviews/stats": "Review statistics",
    "GET /api/v1/reviews/team/{team_name}": "List reviews by team name",
    "GET /api/v1/reviews/{review_id}": "Get a code review",
    "DELETE /api/v1/reviews/{review_id}": "Delete a code review",
}


def build_orchestrator(settings: Settings, store: MongoReviewStore) -> ReviewOrchestrator:
    github = GitHubClient(
        token=settings.GITHUB_TOKEN,
        base_url=settings.GITHUB_API_BASE,
        timeout=settings.GITHUB_TIMEOUT_SECONDS,
    )
    reports = ReportGenerator(
        build_llm(settings),
        report_max_tokens=settings.REPORT_MAX_TOKENS,
        summary_max_tokens=settings.SUMMARY_MAX_TOKENS,
        temperature=settings.LLM_TEMPERATURE,
    )
    return ReviewOrchestrator(
        store=store,
        analyzer=RepositoryAnalyzer(github),
        sampler=CodeSampler(github, max_chars=settings.CODE_SAMPLE_MAX_CHARS),
        reports=reports,
        pacer=FixedDelayPacer(settings.BULK_ITEM_DELAY_SECONDS),
        max_sample_files=settings.CODE_SAMPLE_MAX_FILES,
        bulk_max_items=settings.BULK_MAX_ITEMS,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    app = FastAPI(title=settings.APP_NAME)

    client = create_client(settings)
    db = get_db(client, settings)
    store = MongoReviewStore(db[settings.MONGODB_REVIEWS_COLLECTION])

    app.state.settings = settings
    app.state.db = db
    app.state.store = store
    app.state.orchestrator = build_orchestrator(settings, store)

    @app.on_event("startup")
    async def _startup():
        await store.ensure_indexes()
        logger.info("Indexes ensured")

    @app.on_event("shutdown")
    async def _shutdown():
        client.close()

    @app.exception_handler(ReviewServiceError)
    async def _service_error(request: Request, exc: ReviewServiceError):
        if exc.status_code >= 500:
            logger.error("{} {} failed: {}", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.get("/")
    async def index():
        return {"message": "Code Review API", "version": "0.1.0", "endpoints": ENDPOINTS}

    app.include_router(health_router, prefix="/api/v1")
    app.include_router(reviews_router, prefix="/api/v1")

    return app

app = create_app()
