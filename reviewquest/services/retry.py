"""
RetryEngine - Executes async operations under a retry policy.

Features:
- Attempt cap with exponential (or fixed) backoff clamped to a maximum delay
- Pluggable retry predicate evaluated against classified errors
- Side-effect-only lifecycle hooks (on_retry, on_max_attempts_reached)
- Cooperative cancellation through an asyncio.Event

Attempts are strictly sequential: attempt N+1 starts only after the delay
following attempt N has elapsed.
"""

import asyncio
import functools
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger

from reviewquest.services.errors import ClassifiedError, RequestCancelledError
from reviewquest.settings import Settings, global_settings

T = TypeVar("T")

RetryPredicate = Callable[[ClassifiedError, int], bool]
RetryHook = Callable[[ClassifiedError, int], Any]
ExhaustedHook = Callable[[ClassifiedError], Any]

# Lowercased message fragments treated as transient failures
TRANSIENT_MESSAGE_SIGNATURES = (
    "network",
    "fetch",
    "timeout",
    "500",
    "502",
    "503",
    "504",
)


def default_should_retry(error: ClassifiedError, attempt: int) -> bool:
    """Retry on network errors, server errors and timeouts, judged by message."""
    message = error.message.lower()
    return any(signature in message for signature in TRANSIENT_MESSAGE_SIGNATURES)


def api_should_retry(error: ClassifiedError, attempt: int) -> bool:
    """
    Retry on any 5xx status. Errors without a status are retried when the
    classifier marked them retryable or their message looks transient.
    """
    if error.status is not None:
        return 500 <= error.status < 600
    return error.retryable or default_should_retry(error, attempt)


def is_retryable_error(error: ClassifiedError, attempt: int) -> bool:
    """Trust the classifier: network errors, 5xx and 429 only."""
    return error.retryable


def _noop(*args: Any) -> None:
    return None


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for a RetryEngine. Delays are in seconds."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    use_exponential_backoff: bool = True
    should_retry: RetryPredicate = default_should_retry
    on_retry: RetryHook = _noop
    on_max_attempts_reached: ExhaustedHook = _noop

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("Retry delays must be non-negative")
        if self.backoff_multiplier < 0:
            raise ValueError("backoff_multiplier must be non-negative")

    def compute_delay(self, attempt: int) -> float:
        """
        Delay to wait after the given (1-based) failed attempt.

        The first retry uses exponent 0, so it waits exactly initial_delay.
        """
        if self.use_exponential_backoff:
            delay = self.initial_delay * self.backoff_multiplier ** (attempt - 1)
        else:
            delay = self.initial_delay
        return max(0.0, min(delay, self.max_delay))

    def with_overrides(self, **overrides: Any) -> "RetryPolicy":
        return replace(self, **overrides)


DEFAULT_RETRY_POLICY = RetryPolicy()


def api_retry_policy(**overrides: Any) -> RetryPolicy:
    """Policy for backend API calls: 3 attempts, 1s initial delay, 5s cap."""
    policy = RetryPolicy(
        max_attempts=3,
        initial_delay=1.0,
        max_delay=5.0,
        should_retry=api_should_retry,
    )
    return policy.with_overrides(**overrides)


def quest_retry_policy(
    settings: Settings | None = None, **overrides: Any
) -> RetryPolicy:
    """
    Policy for quest requests: initial attempt plus QUEST_MAX_RETRIES retries
    (4 attempts by default), 1s initial delay doubling up to 5s.
    """
    settings = settings if settings is not None else global_settings
    policy = RetryPolicy(
        max_attempts=settings.quest_max_retries + 1,
        initial_delay=settings.quest_retry_delay,
        max_delay=settings.quest_retry_max_delay,
        backoff_multiplier=2.0,
        should_retry=is_retryable_error,
    )
    return policy.with_overrides(**overrides)


class RetryEngine:
    """
    Retries an async operation according to a RetryPolicy.

    Usage:
        engine = RetryEngine(api_retry_policy())
        data = await engine.execute(lambda: client.get_json("/api/quests"))

        # With cooperative cancellation
        cancel = asyncio.Event()
        data = await engine.execute(fetch, signal=cancel)

    Every failure is classified before the retry decision; the error that
    finally propagates is always a ClassifiedError, chained to the raw
    failure when classification wrapped it.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.policy = policy if policy is not None else DEFAULT_RETRY_POLICY
        self._sleep = sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        signal: asyncio.Event | None = None,
    ) -> T:
        """
        Run operation until it succeeds, is rejected by the policy, or
        attempts are exhausted.

        Raises:
            RequestCancelledError: If signal is set before or during an attempt
            ClassifiedError: The last failure when no further retry is allowed
        """
        policy = self.policy
        attempt = 1

        while True:
            if signal is not None and signal.is_set():
                raise RequestCancelledError()

            try:
                return await self._invoke(operation, signal)
            except RequestCancelledError:
                raise
            except Exception as exc:
                error = ClassifiedError.from_error(exc)

                if signal is not None and signal.is_set():
                    raise RequestCancelledError() from exc

                if policy.should_retry(error, attempt):
                    if attempt < policy.max_attempts:
                        self._call_hook(policy.on_retry, error, attempt)
                        delay = policy.compute_delay(attempt)
                        logger.warning(
                            f"Attempt {attempt}/{policy.max_attempts} failed: "
                            f"{error.message}; "
                            f"retrying in {delay:.2f}s"
                        )
                        await self._wait(delay, signal)
                        attempt += 1
                        continue

                    logger.error(
                        f"Giving up after {attempt} attempts: {error.message}"
                    )
                    self._call_hook(policy.on_max_attempts_reached, error)

                if error is exc:
                    raise
                raise error from exc

    async def _invoke(
        self,
        operation: Callable[[], Awaitable[T]],
        signal: asyncio.Event | None,
    ) -> T:
        """Await operation, racing it against the cancellation signal."""
        if signal is None:
            return await operation()

        finished = await self._race(operation(), signal)
        if finished is None:
            raise RequestCancelledError()
        return finished.result()

    async def _wait(self, delay: float, signal: asyncio.Event | None) -> None:
        """Suspend between attempts; a set signal cuts the wait short."""
        if signal is None:
            await self._sleep(delay)
            return

        await self._race(self._sleep(delay), signal)

    @staticmethod
    async def _race(
        awaitable: Awaitable[T], signal: asyncio.Event
    ) -> "asyncio.Future[T] | None":
        """
        Await awaitable unless signal fires first.

        Returns the finished task, or None when the signal won and the
        awaitable was cancelled.
        """
        task = asyncio.ensure_future(awaitable)
        cancel_task = asyncio.ensure_future(signal.wait())
        try:
            await asyncio.wait(
                {task, cancel_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for pending in (task, cancel_task):
                if not pending.done():
                    pending.cancel()

        return task if task.done() and not task.cancelled() else None

    @staticmethod
    def _call_hook(hook: Callable[..., Any], *args: Any) -> None:
        """Hooks never influence control flow; their failures are logged."""
        try:
            hook(*args)
        except Exception as e:
            logger.warning(f"Retry hook {getattr(hook, '__name__', hook)!r} failed: {e}")


async def retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    signal: asyncio.Event | None = None,
) -> T:
    """Run a one-off operation with retries."""
    return await RetryEngine(policy).execute(operation, signal=signal)


def with_retry(policy: RetryPolicy | None = None):
    """
    Decorator producing a retrying version of an async function.

    Usage:
        @with_retry(api_retry_policy(max_attempts=2))
        async def load(url: str) -> dict: ...
    """
    engine = RetryEngine(policy)

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await engine.execute(lambda: func(*args, **kwargs))

        return wrapper

    return decorator
