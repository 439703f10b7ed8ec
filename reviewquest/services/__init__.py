"""
Service layer infrastructure - resilient access to the review/quest backend.

Provides:
- ClassifiedError: Uniform failure type with retry/auth/network classification
- RetryEngine: Retries async operations with capped exponential backoff
- CacheManager: Process-local result cache with optional TTL
- ServiceClient: Async HTTP transport
- QuestService / ReviewsService: Request services combining all of the above
"""

from reviewquest.services.errors import (
    ServiceError,
    ClassifiedError,
    ErrorCode,
    RequestCancelledError,
)
from reviewquest.services.retry import (
    RetryEngine,
    RetryPolicy,
    DEFAULT_RETRY_POLICY,
    api_retry_policy,
    quest_retry_policy,
    retry,
    with_retry,
)
from reviewquest.services.cache import CacheManager, CacheEntry, CacheResult
from reviewquest.services.client import ServiceClient
from reviewquest.services.quests import QuestService
from reviewquest.services.reviews import ReviewsService

__all__ = [
    # Errors
    "ServiceError",
    "ClassifiedError",
    "ErrorCode",
    "RequestCancelledError",
    # Retry
    "RetryEngine",
    "RetryPolicy",
    "DEFAULT_RETRY_POLICY",
    "api_retry_policy",
    "quest_retry_policy",
    "retry",
    "with_retry",
    # Cache
    "CacheManager",
    "CacheEntry",
    "CacheResult",
    # Client
    "ServiceClient",
    # Services
    "QuestService",
    "ReviewsService",
]
