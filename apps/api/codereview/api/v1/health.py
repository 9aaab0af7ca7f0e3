from fastapi import APIRouter, Request
from loguru import logger
from pymongo.errors import PyMongoError

async def mongo_ok(request: Request) -> bool:
    db = getattr(request.app.state, "db", None)
    if db is None:
        return False
    try:
        await db.command("ping")
        return True
    except PyMongoError as e:
        logger.warning("mongo ping failed: {!r}", e)
        return False

router = APIRouter(tags=["health"])

@router.get("/health")
async def health(request: Request):
    settings = request.app.state.settings
    return {
        "status": "ok",
        "mongo": await mongo_ok(request),
        "llm_provider": settings.LLM_PROVIDER,
    }
