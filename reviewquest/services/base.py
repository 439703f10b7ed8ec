"""
Base request service.

Composes ServiceClient, RetryEngine and CacheManager around backend calls:
reads go through the cache and the retry engine, writes go through the retry
engine and clear the cache on success.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, Callable, Generic, Mapping, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from reviewquest.services.cache import CacheManager
from reviewquest.services.client import ServiceClient
from reviewquest.services.errors import (
    ClassifiedError,
    ErrorCode,
    extract_error_message,
)
from reviewquest.services.retry import RetryEngine, RetryPolicy
from reviewquest.settings import Settings, global_settings

R = TypeVar("R", bound=BaseModel)
M = TypeVar("M", bound=BaseModel)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again."


class BaseRequestService(ABC, Generic[R]):
    """
    Abstract base class for backend request services.

    Subclasses declare their endpoint, cache namespace, listing model and
    user-facing messages. All services should:
    - Share one ServiceClient and, where reads overlap, one CacheManager
    - Return Pydantic models
    - Raise ClassifiedError for every failure
    """

    API_BASE_URL: str
    CACHE_NAMESPACE: str
    DEFAULT_LIMIT = 20

    # Checked in order: status messages first, then code messages
    STATUS_MESSAGES: dict[int, str] = {}
    SERVER_ERROR_MESSAGE = "Server error. Please try again later."
    CODE_MESSAGES: dict[str, str] = {}

    def __init__(
        self,
        client: ServiceClient | None = None,
        cache: CacheManager | None = None,
        retry_policy: RetryPolicy | None = None,
        settings: Settings | None = None,
    ):
        from reviewquest.services.client import get_service_client

        self.settings = settings if settings is not None else global_settings
        self.client = client if client is not None else get_service_client()
        # CacheManager defines __len__, so an empty shared cache is falsy
        self.cache = cache if cache is not None else _build_cache(self.settings)
        self.retry_policy = (
            retry_policy if retry_policy is not None else self.default_retry_policy()
        )

    @property
    @abstractmethod
    def service_id(self) -> str:
        """Unique identifier for this service."""
        ...

    @property
    @abstractmethod
    def response_model(self) -> type[R]:
        """Model used to parse listing responses."""
        ...

    @abstractmethod
    def default_retry_policy(self) -> RetryPolicy:
        """Retry policy used when none is injected."""
        ...

    def _engine(self) -> RetryEngine:
        return RetryEngine(self.retry_policy)

    async def _fetch_page(
        self,
        page: int,
        limit: int,
        filters: BaseModel | Mapping[str, Any] | None,
        signal: asyncio.Event | None,
        use_cache: bool,
    ) -> R:
        """GET a listing page, served from the cache when possible."""
        filter_params = _query_params(filters)
        cache_key = CacheManager.build_key(
            self.CACHE_NAMESPACE, page, filter_params, limit=limit
        )

        if use_cache:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                return cached.data.model_copy(deep=True)

        params = {"page": str(page), "limit": str(limit), **filter_params}

        async def operation() -> R:
            response = await self.client.request(
                "GET", self.API_BASE_URL, params=params
            )
            if not response.is_success:
                raise self._http_error(
                    response,
                    ErrorCode.HTTP_ERROR,
                    f"Failed to fetch {self.CACHE_NAMESPACE}: {response.status_code}",
                )
            return self.response_model.model_validate(response.json())

        result = await self._engine().execute(operation, signal=signal)

        if use_cache:
            # Callers get their own copy; the cached page is never handed out
            await self.cache.set(cache_key, result.model_copy(deep=True))

        return result

    async def _mutate(
        self,
        method: str,
        path: str,
        code: ErrorCode,
        action: str,
        payload: Any = None,
        signal: asyncio.Event | None = None,
    ) -> dict[str, Any]:
        """
        Send a write request and clear the cache once it succeeds.

        Only failures the retry policy accepts (transient ones by default)
        are retried. Nothing is cached on failure.
        """

        async def operation() -> dict[str, Any]:
            try:
                response = await self.client.request(method, path, json_data=payload)
            except ClassifiedError as e:
                if e.code != ErrorCode.FETCH_ERROR:
                    raise
                # Tag transport failures with the write's own code
                raise ClassifiedError(
                    e.message,
                    code=code,
                    status=e.status,
                    retryable=e.retryable,
                    service_id=self.service_id,
                ) from e

            if not response.is_success:
                raise self._http_error(
                    response,
                    code,
                    f"Failed to {action}: {response.status_code}",
                )
            return _json_body(response)

        result = await self._engine().execute(operation, signal=signal)

        # Any write may change any listing page
        await self.cache.clear()
        logger.debug(f"[{self.service_id}] {method} {path} succeeded, cache cleared")
        return result

    def _parse_entity(
        self, model: type[M], data: Any, code: ErrorCode, action: str
    ) -> M:
        """Validate a write response body, failing with the write's code."""
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning(
                f"[{self.service_id}] Unexpected response to {action}: "
                f"{e.error_count()} validation errors"
            )
            raise ClassifiedError(
                f"Unexpected response while trying to {action}",
                code=code,
                service_id=self.service_id,
            ) from e

    def _http_error(
        self, response: httpx.Response, code: ErrorCode, fallback: str
    ) -> ClassifiedError:
        return ClassifiedError.from_response(
            response,
            message=extract_error_message(response) or fallback,
            code=code,
            service_id=self.service_id,
        )

    @classmethod
    def get_error_message(cls, error: Any) -> str:
        """
        Map an error to a non-technical, actionable message.

        Status is checked before code; anything unrecognized gets the
        generic message.
        """
        if not isinstance(error, ClassifiedError):
            return GENERIC_ERROR_MESSAGE

        status = error.status
        if status is not None:
            if status in cls.STATUS_MESSAGES:
                return cls.STATUS_MESSAGES[status]
            if status >= 500:
                return cls.SERVER_ERROR_MESSAGE

        code = getattr(error.code, "value", error.code)
        return cls.CODE_MESSAGES.get(code, GENERIC_ERROR_MESSAGE)


def _build_cache(settings: Settings) -> CacheManager:
    ttl = settings.cache_ttl_seconds
    return CacheManager(
        max_size=settings.cache_max_size,
        default_ttl=timedelta(seconds=ttl) if ttl else None,
        debug=settings.debug,
    )


def _query_params(filters: BaseModel | Mapping[str, Any] | None) -> dict[str, str]:
    """Flatten filters into query parameters, dropping empty values."""
    if filters is None:
        return {}
    if isinstance(filters, BaseModel):
        raw = filters.model_dump(mode="json", by_alias=True, exclude_none=True)
    else:
        raw = {k: getattr(v, "value", v) for k, v in filters.items()}
    return {k: str(v) for k, v in raw.items() if v is not None and v != ""}


def _json_body(response: httpx.Response) -> dict[str, Any]:
    if not response.content:
        return {}
    body = response.json()
    return body if isinstance(body, dict) else {"data": body}


def call_listener(listener: Callable[..., Any] | None, *args: Any) -> None:
    """Invoke an optional notification callback; failures are only logged."""
    if listener is None:
        return
    try:
        listener(*args)
    except Exception as e:
        name = getattr(listener, "__name__", repr(listener))
        logger.warning(f"Listener {name} failed: {e}")
