"""
ReviewsService - classified app-store reviews from the backend.
"""

import asyncio
from typing import Any, Mapping

from reviewquest.models.review import (
    Review,
    ReviewFilters,
    ReviewOverview,
    ReviewsResponse,
    UpdateReviewData,
)
from reviewquest.services.base import BaseRequestService
from reviewquest.services.errors import ErrorCode
from reviewquest.services.retry import RetryPolicy, api_retry_policy


class ReviewsService(BaseRequestService[ReviewsResponse]):
    """Review listing and triage updates, sharing the quest service plumbing."""

    API_BASE_URL = "/api/reviews"
    CACHE_NAMESPACE = "reviews"
    SERVICE_ID = "reviews"

    STATUS_MESSAGES = {
        401: "You need to sign in to view reviews.",
        403: "You don't have permission to perform this action.",
        404: "Review not found. It may have been removed.",
        429: "Too many requests. Please wait a moment and try again.",
    }
    CODE_MESSAGES = {
        ErrorCode.FETCH_ERROR.value: (
            "Failed to load reviews. Please check your connection and try again."
        ),
        ErrorCode.UPDATE_ERROR.value: "Failed to update review. Please try again.",
        ErrorCode.CANCELLED_ERROR.value: "The request was cancelled.",
    }

    @property
    def service_id(self) -> str:
        return self.SERVICE_ID

    @property
    def response_model(self) -> type[ReviewsResponse]:
        return ReviewsResponse

    def default_retry_policy(self) -> RetryPolicy:
        return api_retry_policy()

    async def fetch_reviews(
        self,
        page: int = 1,
        limit: int = BaseRequestService.DEFAULT_LIMIT,
        filters: ReviewFilters | Mapping[str, Any] | None = None,
        signal: asyncio.Event | None = None,
        use_cache: bool = True,
    ) -> ReviewsResponse:
        """Fetch a page of reviews, served from the cache when possible."""
        return await self._fetch_page(page, limit, filters, signal, use_cache)

    async def fetch_overview(self, signal: asyncio.Event | None = None) -> ReviewOverview:
        response = await self.fetch_reviews(page=1, limit=1, signal=signal)
        return response.overview

    async def update_review(
        self,
        review_id: str,
        updates: UpdateReviewData | Mapping[str, Any],
        signal: asyncio.Event | None = None,
    ) -> Review:
        """Update a review's triage fields and clear cached listings."""
        patch = UpdateReviewData.model_validate(updates)
        result = await self._mutate(
            "PUT",
            f"{self.API_BASE_URL}/{review_id}",
            ErrorCode.UPDATE_ERROR,
            "update review",
            payload=patch.model_dump(mode="json", by_alias=True, exclude_none=True),
            signal=signal,
        )
        return self._parse_entity(
            Review,
            result.get("review", result),
            ErrorCode.UPDATE_ERROR,
            "update review",
        )
