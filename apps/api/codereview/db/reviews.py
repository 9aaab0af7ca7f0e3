from __future__ import annotations

import functools
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Protocol

from bson import ObjectId
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from codereview.core.errors import PersistenceFailed
from codereview.schemas.review import ReviewPage, ReviewRecord, ReviewStatistics

RECENT_WINDOW = timedelta(days=7)


class ReviewStore(Protocol):
    async def insert(self, record: ReviewRecord) -> ReviewRecord: ...

    async def get_by_id(self, review_id: str) -> Optional[ReviewRecord]: ...

    async def find_latest_by_url(self, github_url: str) -> Optional[ReviewRecord]: ...

    async def list_page(self, page: int = 1, limit: int = 10) -> ReviewPage: ...

    async def list_page_by_team(self, team_name: str, page: int = 1, limit: int = 10) -> ReviewPage: ...

    async def delete(self, review_id: str) -> bool: ...

    async def aggregate_stats(self) -> ReviewStatistics: ...


def _persistence(op: str):
    def deco(fn):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            try:
                return await fn(*args, **kwargs)
            except PyMongoError as e:
                logger.error("Review store {} failed: {}", op, e)
                raise PersistenceFailed(f"Failed to {op}: {e}") from e
        return wrapper
    return deco


def _to_doc(record: ReviewRecord) -> Dict[str, Any]:
    doc = record.model_dump(exclude={"id"})
    doc["analysis_depth"] = record.analysis_depth.value
    return doc


def _from_doc(doc: Dict[str, Any]) -> ReviewRecord:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return ReviewRecord.model_validate(doc)


def _oid(review_id: str) -> Optional[ObjectId]:
    return ObjectId(review_id) if ObjectId.is_valid(review_id) else None


class MongoReviewStore:
    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self.col = collection

    @_persistence("create indexes")
    async def ensure_indexes(self) -> None:
        await self.col.create_index("github_url")
        await self.col.create_index("team_name")
        await self.col.create_index("created_at")

    @_persistence("save review")
    async def insert(self, record: ReviewRecord) -> ReviewRecord:
        result = await self.col.insert_one(_to_doc(record))
        return record.model_copy(update={"id": str(result.inserted_id)})

    @_persistence("get review")
    async def get_by_id(self, review_id: str) -> Optional[ReviewRecord]:
        oid = _oid(review_id)
        if oid is None:
            return None
        doc = await self.col.find_one({"_id": oid})
        return _from_doc(doc) if doc else None

    @_persistence("search review")
    async def find_latest_by_url(self, github_url: str) -> Optional[ReviewRecord]:
        doc = await self.col.find_one({"github_url": github_url}, sort=[("created_at", -1)])
        return _from_doc(doc) if doc else None

    async def _page(self, query: Dict[str, Any], page: int, limit: int) -> ReviewPage:
        page = max(page, 1)
        limit = max(limit, 1)
        cursor = self.col.find(query).sort("created_at", -1).skip((page - 1) * limit).limit(limit)
        docs = await cursor.to_list(length=limit)
        total = await self.col.count_documents(query)
        return ReviewPage(items=[_from_doc(d) for d in docs], total_count=total, page=page, limit=limit)

    @_persistence("get reviews")
    async def list_page(self, page: int = 1, limit: int = 10) -> ReviewPage:
        return await self._page({}, page, limit)

    @_persistence("get reviews by team name")
    async def list_page_by_team(self, team_name: str, page: int = 1, limit: int = 10) -> ReviewPage:
        return await self._page({"team_name": team_name}, page, limit)

    @_persistence("delete review")
    async def delete(self, review_id: str) -> bool:
        oid = _oid(review_id)
        if oid is None:
            return False
        result = await self.col.delete_one({"_id": oid})
        return result.deleted_count > 0

    @_persistence("get statistics")
    async def aggregate_stats(self) -> ReviewStatistics:
        since = datetime.now(timezone.utc) - RECENT_WINDOW
        total = await self.col.count_documents({})
        recent = await self.col.count_documents({"created_at": {"$gte": since}})

        pipeline = [
            {"$match": {"repository_language": {"$ne": None}}},
            {"$group": {"_id": "$repository_language", "count": {"$sum": 1}}},
            {"$sort": {"count": -1}},
        ]
        rows = await self.col.aggregate(pipeline).to_list(length=None)

        return ReviewStatistics(
            total_reviews=total,
            recent_reviews=recent,
            language_statistics={r["_id"]: r["count"] for r in rows},
        )
