from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ReviewServiceError(Exception):
    """Base for every error the review service maps to an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRepositoryUrl(ReviewServiceError):
    status_code = 400

    def __init__(self, url: str, classification: Any) -> None:
        super().__init__(f"Not a repository URL: {url}")
        self.url = url
        self.classification = classification


class UpstreamErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    QUOTA_EXCEEDED = "quota_exceeded"
    NETWORK = "network"
    BAD_RESPONSE = "bad_response"


class UpstreamUnavailable(ReviewServiceError):
    status_code = 503

    def __init__(self, message: str, kind: UpstreamErrorKind) -> None:
        super().__init__(message)
        self.kind = kind


class GenerationFailed(ReviewServiceError):
    status_code = 500


class LLMRateLimitError(GenerationFailed):
    status_code = 429


class DuplicateExists(ReviewServiceError):
    status_code = 409

    def __init__(self, existing_id: Optional[str]) -> None:
        super().__init__("Review already exists for this repository")
        self.existing_id = existing_id


class PersistenceFailed(ReviewServiceError):
    status_code = 500


class ValidationFailed(ReviewServiceError):
    status_code = 400


class ReviewNotFound(ReviewServiceError):
    status_code = 404

    def __init__(self, review_id: str) -> None:
        super().__init__("Review not found")
        self.review_id = review_id
