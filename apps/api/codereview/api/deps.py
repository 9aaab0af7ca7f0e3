from fastapi import Request

from codereview.db.reviews import ReviewStore
from codereview.services.review.orchestrator import ReviewOrchestrator


def get_store(request: Request) -> ReviewStore:
    return request.app.state.store


def get_orchestrator(request: Request) -> ReviewOrchestrator:
    return request.app.state.orchestrator
