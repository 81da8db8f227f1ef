"""Ordered-fallback execution over named strategies.

A strategy is one candidate way of performing a logical operation (a distinct
endpoint or query shape). run_fallback tries them strictly in order: the first
one that resolves, and whose payload survives the mapper, supplies the result
and later strategies are never started. When every strategy fails the caller
gets a FallbackOutcome with ok=False instead of an exception.

Per invocation:
    Idle -> Trying[0] -> (Success | Trying[1]) -> ... -> (Success | Exhausted)
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
)

from src.campus_client.errors import FallbackExhaustedError, TransientError
from src.campus_client.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Strategy:
    """A named zero-argument coroutine factory."""

    name: str
    call: Callable[[], Awaitable[Any]]


@dataclass
class FallbackOutcome(Generic[T]):
    """Result of a fallback chain.

    Attributes:
        operation: Logical operation name, for logs and errors.
        value: Mapped result of the winning strategy (None when exhausted).
        strategy: Name of the winning strategy (None when exhausted).
        failures: (strategy name, error) for every failed strategy, in order.
    """

    operation: str
    value: T | None = None
    strategy: str | None = None
    failures: list[tuple[str, Exception]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.strategy is not None

    @property
    def attempted(self) -> list[str]:
        names = [name for name, _ in self.failures]
        if self.strategy is not None:
            names.append(self.strategy)
        return names

    def unwrap(self) -> T:
        """Return the value, or raise FallbackExhaustedError."""
        if not self.ok:
            raise FallbackExhaustedError(self.operation, self.failures)
        return self.value  # type: ignore[return-value]


async def _attempt(strategy: Strategy, attempts: int) -> Any:
    # Only transient failures are re-attempted; attempts=1 means a single call
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(attempts),
        retry=retry_if_exception_type(TransientError),
        reraise=True,
    ):
        with attempt:
            return await strategy.call()


async def run_fallback(
    operation: str,
    strategies: Sequence[Strategy],
    *,
    mapper: Callable[[Any], T] | None = None,
    on_success: Callable[[T], Awaitable[None]] | None = None,
    attempts_per_strategy: int = 1,
) -> FallbackOutcome[T]:
    """Run strategies in order until one succeeds.

    Args:
        operation: Name of the logical operation (e.g. "fetch_professor_reservations").
        strategies: Ordered candidates; later ones only run if earlier ones fail.
        mapper: Canonicalises a raw result. Raising counts as that strategy failing.
        on_success: Awaited with the mapped value once a strategy wins.
        attempts_per_strategy: Attempts per strategy for transient failures.

    Returns:
        FallbackOutcome; never raises for strategy failures.
    """
    outcome: FallbackOutcome[T] = FallbackOutcome(operation=operation)
    log.debug(
        "fallback_started",
        operation=operation,
        strategies=[s.name for s in strategies],
    )

    for index, strategy in enumerate(strategies):
        log.debug("strategy_attempt", operation=operation, strategy=strategy.name, index=index)
        try:
            raw = await _attempt(strategy, attempts_per_strategy)
            value = mapper(raw) if mapper is not None else raw
        except Exception as e:
            outcome.failures.append((strategy.name, e))
            log.warning(
                "strategy_failed",
                operation=operation,
                strategy=strategy.name,
                index=index,
                error=str(e),
                type=type(e).__name__,
            )
            continue

        outcome.value = value
        outcome.strategy = strategy.name
        log.info(
            "fallback_succeeded",
            operation=operation,
            strategy=strategy.name,
            failed_before=len(outcome.failures),
        )
        if on_success is not None:
            await on_success(value)
        return outcome

    log.error(
        "fallback_exhausted",
        operation=operation,
        tried=[name for name, _ in outcome.failures],
    )
    return outcome
