"""
QuestService - quest CRUD against the backend with retries and caching.

Endpoints:
- GET    /api/quests          paginated, filtered listing with overview counts
- POST   /api/quests          create
- PATCH  /api/quests/{id}     update (method configurable via QUEST_UPDATE_METHOD)
- DELETE /api/quests/{id}     delete
- GET    /api/quests/health   availability check
"""

import asyncio
from typing import Any, Callable, Mapping

from loguru import logger

from reviewquest.models.quest import (
    CreateQuestData,
    Quest,
    QuestFilters,
    QuestOverview,
    QuestsResponse,
    QuestState,
    UpdateQuestData,
    XPAction,
)
from reviewquest.services.base import BaseRequestService, call_listener
from reviewquest.services.cache import CacheManager
from reviewquest.services.client import ServiceClient
from reviewquest.services.errors import ErrorCode
from reviewquest.services.retry import RetryEngine, RetryPolicy, quest_retry_policy
from reviewquest.settings import Settings

XPListener = Callable[[dict[str, Any], XPAction], Any]

# Single attempt; only the cancellation signal is honoured
HEALTH_CHECK_POLICY = RetryPolicy(
    max_attempts=1, should_retry=lambda error, attempt: False
)


class QuestService(BaseRequestService[QuestsResponse]):
    """
    Quest operations with classified errors, retries and a result cache.

    Usage:
        service = QuestService(client=client, cache=shared_cache)

        page = await service.fetch_quests(filters=QuestFilters(state=QuestState.OPEN))
        quest = await service.create_quest(
            CreateQuestData(title="Fix crash", type="BUG_FIX", priority="HIGH")
        )

    Reads are cached per page/limit/filters. Any successful write clears the
    whole cache so the next read goes to the backend.
    """

    API_BASE_URL = "/api/quests"
    CACHE_NAMESPACE = "quests"
    SERVICE_ID = "quests"

    STATUS_MESSAGES = {
        401: "You need to sign in to manage quests.",
        403: "You don't have permission to perform this action.",
        404: "Quest not found. It may have been deleted.",
        429: "Too many requests. Please wait a moment and try again.",
    }
    CODE_MESSAGES = {
        ErrorCode.FETCH_ERROR.value: (
            "Failed to load quests. Please check your connection and try again."
        ),
        ErrorCode.CREATE_ERROR.value: "Failed to create quest. Please try again.",
        ErrorCode.UPDATE_ERROR.value: "Failed to update quest. Please try again.",
        ErrorCode.DELETE_ERROR.value: "Failed to delete quest. Please try again.",
        ErrorCode.CANCELLED_ERROR.value: "The request was cancelled.",
    }

    def __init__(
        self,
        client: ServiceClient | None = None,
        cache: CacheManager | None = None,
        retry_policy: RetryPolicy | None = None,
        on_xp_awarded: XPListener | None = None,
        settings: Settings | None = None,
    ):
        super().__init__(client, cache, retry_policy, settings)
        self._update_method = self.settings.quest_update_method.upper()
        self._on_xp_awarded = on_xp_awarded

    @property
    def service_id(self) -> str:
        return self.SERVICE_ID

    @property
    def response_model(self) -> type[QuestsResponse]:
        return QuestsResponse

    def default_retry_policy(self) -> RetryPolicy:
        return quest_retry_policy(self.settings)

    async def fetch_quests(
        self,
        page: int = 1,
        limit: int = BaseRequestService.DEFAULT_LIMIT,
        filters: QuestFilters | Mapping[str, Any] | None = None,
        signal: asyncio.Event | None = None,
        use_cache: bool = True,
    ) -> QuestsResponse:
        """
        Fetch a page of quests.

        A cache hit returns without any network call. On a miss the GET is
        retried on network errors, 5xx and 429 (4 attempts by default) and
        the parsed page is cached.

        Raises:
            ClassifiedError: HTTP_ERROR for non-2xx, FETCH_ERROR for transport
                failures, CANCELLED_ERROR when signal is set
        """
        return await self._fetch_page(page, limit, filters, signal, use_cache)

    async def fetch_overview(self, signal: asyncio.Event | None = None) -> QuestOverview:
        """Fetch only the overview statistics."""
        response = await self.fetch_quests(page=1, limit=1, signal=signal)
        return response.overview

    async def create_quest(
        self,
        data: CreateQuestData | Mapping[str, Any],
        signal: asyncio.Event | None = None,
    ) -> Quest:
        """Create a quest. Raises ClassifiedError with CREATE_ERROR on HTTP failure."""
        payload = _dump(CreateQuestData.model_validate(data))
        result = await self._mutate(
            "POST",
            self.API_BASE_URL,
            ErrorCode.CREATE_ERROR,
            "create quest",
            payload=payload,
            signal=signal,
        )
        self._handle_xp_award(result, XPAction.QUEST_CREATED)
        return self._parse_entity(
            Quest, result.get("quest", result), ErrorCode.CREATE_ERROR, "create quest"
        )

    async def update_quest(
        self,
        quest_id: str,
        updates: UpdateQuestData | Mapping[str, Any],
        signal: asyncio.Event | None = None,
    ) -> Quest:
        """Update a quest. Raises ClassifiedError with UPDATE_ERROR on HTTP failure."""
        patch = UpdateQuestData.model_validate(updates)
        result = await self._mutate(
            self._update_method,
            f"{self.API_BASE_URL}/{quest_id}",
            ErrorCode.UPDATE_ERROR,
            "update quest",
            payload=_dump(patch),
            signal=signal,
        )

        if patch.state == QuestState.DONE:
            action = XPAction.QUEST_COMPLETED
        else:
            action = XPAction.QUEST_IN_PROGRESS
        self._handle_xp_award(result, action)

        return self._parse_entity(
            Quest, result.get("quest", result), ErrorCode.UPDATE_ERROR, "update quest"
        )

    async def delete_quest(
        self,
        quest_id: str,
        signal: asyncio.Event | None = None,
    ) -> None:
        """Delete a quest. Raises ClassifiedError with DELETE_ERROR on HTTP failure."""
        await self._mutate(
            "DELETE",
            f"{self.API_BASE_URL}/{quest_id}",
            ErrorCode.DELETE_ERROR,
            "delete quest",
            signal=signal,
        )

    async def health_check(self, signal: asyncio.Event | None = None) -> bool:
        """Check if the quest API is available. Never raises, never retries."""
        try:
            response = await RetryEngine(HEALTH_CHECK_POLICY).execute(
                lambda: self.client.request("GET", f"{self.API_BASE_URL}/health"),
                signal=signal,
            )
            return response.is_success
        except Exception as e:
            logger.warning(f"Quest API health check failed: {e}")
            return False

    def _handle_xp_award(self, result: dict[str, Any], action: XPAction) -> None:
        """Hand a valid XP award from a mutation response to the listener."""
        award = result.get("xpAwarded")
        if isinstance(award, dict) and award.get("xpAwarded"):
            call_listener(self._on_xp_awarded, award, action)


def _dump(model: CreateQuestData | UpdateQuestData) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)
