"""Reservation collection: fetching, caching and optimistic mutations.

ReservationService fetches the current user's reservations through the
fallback chain and degrades to the cache mirror when every endpoint fails.
OptimisticMutationEngine applies cancel/edit in two phases:

1. Local commit: the in-memory collection and the cache snapshot are updated
   and success is reported to the caller.
2. Best-effort replication: a background task walks the endpoint strategies
   for the mutation. Its outcome is logged and discarded; the local change is
   never rolled back, even if every endpoint fails.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from src.campus_client.cache import EDITING_RESERVATION_KEY, CacheMirror
from src.campus_client.config import ClientConfig
from src.campus_client.endpoints import (
    Audience,
    cancel_strategies,
    edit_strategies,
    fetch_strategies,
)
from src.campus_client.errors import InvalidMutationError, ParseError
from src.campus_client.fallback import Strategy, run_fallback
from src.campus_client.logging import get_logger, operation_context
from src.campus_client.mapping import map_reservation, map_reservations, parse_reservation_payload
from src.campus_client.models import Reservation, ReservationQuery, ReservationStatus
from src.campus_client.pipeline import apply_query, status_counts
from src.campus_client.transport import ApiTransport

log = get_logger(__name__)

FETCH_DEGRADED_MESSAGE = "Failed to load reservations from server. Using local data."


@dataclass
class FetchResult:
    """Collection handed to the presentation layer after a fetch.

    Attributes:
        items: Canonical reservations to display.
        source: "remote", "cache" or "empty".
        strategy: Name of the strategy that answered (remote only).
        error: User-facing message when local data is in use (show a retry option).
    """

    items: list[Reservation]
    source: str
    strategy: str | None = None
    error: str | None = None

    @property
    def degraded(self) -> bool:
        return self.source != "remote"


@dataclass
class MutationResult:
    """Caller-visible result of a cancel or edit.

    `replication` is the background sync task; it is exposed for shutdown and
    diagnostics only and its outcome never changes `ok`.
    """

    ok: bool
    reservations: list[Reservation]
    reason: str | None = None
    replication: asyncio.Task | None = None


class OptimisticMutationEngine:
    """Owns the canonical in-memory reservation collection and all changes to it."""

    def __init__(
        self,
        transport: ApiTransport,
        cache: CacheMirror,
        audience: Audience = Audience.PROFESSOR,
        *,
        attempts_per_strategy: int = 1,
        on_detail_close: Callable[[str], None] | None = None,
    ) -> None:
        self.transport = transport
        self.cache = cache
        self.audience = audience
        self.attempts_per_strategy = attempts_per_strategy
        self.on_detail_close = on_detail_close
        self.reservations: list[Reservation] = []
        self.open_detail_id: str | None = None
        self._pending: set[asyncio.Task] = set()

    def load(self, collection: list[Reservation]) -> None:
        """Replace the collection (after a fetch). Last write wins."""
        self.reservations = list(collection)

    def find(self, reservation_id: str) -> Reservation | None:
        for reservation in self.reservations:
            if reservation.id == reservation_id:
                return reservation
        return None

    def open_detail(self, reservation_id: str) -> Reservation | None:
        """Record that a detail view for this reservation is showing."""
        reservation = self.find(reservation_id)
        self.open_detail_id = reservation.id if reservation else None
        return reservation

    def _require(self, reservation_id: str) -> Reservation:
        reservation = self.find(reservation_id)
        if reservation is None:
            raise InvalidMutationError(f"Reservation {reservation_id} not found")
        return reservation

    def _reject(self, operation: str, reservation_id: str, error: InvalidMutationError) -> MutationResult:
        log.info("mutation_rejected", operation=operation, reservation_id=reservation_id, reason=error.reason)
        return MutationResult(ok=False, reservations=list(self.reservations), reason=error.reason)

    async def _commit(self, updated: Reservation) -> None:
        self.reservations = [updated if r.id == updated.id else r for r in self.reservations]
        await self.cache.write(self.audience.cache_key, self.reservations)
        if self.open_detail_id == updated.id:
            self.open_detail_id = None
            if self.on_detail_close is not None:
                self.on_detail_close(updated.id)

    def _replicate(self, operation: str, reservation_id: str, strategies: list[Strategy]) -> asyncio.Task:
        task = asyncio.create_task(self._replicate_quietly(operation, reservation_id, strategies))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _replicate_quietly(
        self, operation: str, reservation_id: str, strategies: list[Strategy]
    ) -> None:
        # Strategy logs from the chain carry the reservation id
        with operation_context(reservation_id=reservation_id):
            outcome = await run_fallback(
                operation, strategies, attempts_per_strategy=self.attempts_per_strategy
            )
        # Outcome is discarded: local state stays as committed either way
        if outcome.ok:
            log.info(
                "replication_succeeded",
                operation=operation,
                reservation_id=reservation_id,
                strategy=outcome.strategy,
            )
        else:
            log.warning(
                "replication_exhausted",
                operation=operation,
                reservation_id=reservation_id,
                tried=outcome.attempted,
            )

    async def cancel(self, reservation_id: str) -> MutationResult:
        """Mark a reservation Canceled locally, then sync in the background.

        Only Pending and Approved reservations can be canceled. Once the local
        commit has applied the result is always ok.
        """
        try:
            target = self._require(reservation_id)
            if not target.can_cancel:
                raise InvalidMutationError(
                    f"Cannot cancel this reservation because its status is {target.status.value}"
                )
        except InvalidMutationError as e:
            return self._reject("cancel", reservation_id, e)

        await self._commit(target.model_copy(update={"status": ReservationStatus.CANCELED}))
        log.info("reservation_canceled_locally", reservation_id=reservation_id)
        task = self._replicate(
            "replicate_cancel",
            reservation_id,
            cancel_strategies(self.transport, self.audience, reservation_id),
        )
        return MutationResult(ok=True, reservations=list(self.reservations), replication=task)

    async def edit(self, edited: Reservation) -> MutationResult:
        """Apply edited fields locally, then sync in the background.

        Only Pending reservations can be edited; anything else is rejected
        before any network call. The id and status of the stored record are
        kept.
        """
        try:
            current = self._require(edited.id)
            if not current.can_edit:
                raise InvalidMutationError(
                    f"Cannot edit this reservation because its status is {current.status.value}"
                )
        except InvalidMutationError as e:
            return self._reject("edit", edited.id, e)

        updated = edited.model_copy(update={"status": current.status})
        await self._commit(updated)
        log.info("reservation_edited_locally", reservation_id=updated.id)
        task = self._replicate(
            "replicate_edit",
            updated.id,
            edit_strategies(self.transport, self.audience, updated),
        )
        return MutationResult(ok=True, reservations=list(self.reservations), replication=task)

    async def stage_edit(self, reservation_id: str) -> MutationResult:
        """Hand a pending reservation to the edit form through the cache store."""
        try:
            current = self._require(reservation_id)
            if not current.can_edit:
                raise InvalidMutationError(
                    f"Cannot edit this reservation because its status is {current.status.value}"
                )
        except InvalidMutationError as e:
            return self._reject("stage_edit", reservation_id, e)

        await self.cache.write_record(EDITING_RESERVATION_KEY, current)
        return MutationResult(ok=True, reservations=list(self.reservations))

    async def take_staged_edit(self) -> Reservation | None:
        """Return and clear the reservation staged for editing, if any."""
        raw = await self.cache.read_record(EDITING_RESERVATION_KEY)
        if raw is None:
            return None
        await self.cache.clear(EDITING_RESERVATION_KEY)
        try:
            return map_reservation(raw)
        except ParseError as e:
            log.warning("staged_edit_unreadable", error=str(e))
            return None

    async def drain(self) -> None:
        """Wait for outstanding replication tasks."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


class ReservationService:
    """Reservation list for one audience, backed by the fallback chain and cache."""

    def __init__(
        self,
        transport: ApiTransport,
        cache: CacheMirror,
        audience: Audience = Audience.PROFESSOR,
        *,
        attempts_per_strategy: int = 1,
        on_detail_close: Callable[[str], None] | None = None,
    ) -> None:
        self.transport = transport
        self.cache = cache
        self.audience = audience
        self.attempts_per_strategy = attempts_per_strategy
        self.engine = OptimisticMutationEngine(
            transport,
            cache,
            audience,
            attempts_per_strategy=attempts_per_strategy,
            on_detail_close=on_detail_close,
        )

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        transport: ApiTransport,
        cache: CacheMirror,
        audience: Audience = Audience.PROFESSOR,
    ) -> "ReservationService":
        return cls(
            transport,
            cache,
            audience,
            attempts_per_strategy=config.attempts_per_strategy,
        )

    @property
    def reservations(self) -> list[Reservation]:
        return self.engine.reservations

    async def _store(self, items: list[Reservation]) -> None:
        self.engine.load(items)
        await self.cache.write(self.audience.cache_key, items)

    async def fetch(self) -> FetchResult:
        """Fetch the reservation list, falling back to the last cached snapshot.

        Never raises for network failures: an exhausted chain yields the
        cached collection (or an empty one) with a user-facing error message.
        """
        outcome = await run_fallback(
            f"fetch_{self.audience.value}_reservations",
            fetch_strategies(self.transport, self.audience),
            mapper=parse_reservation_payload,
            on_success=self._store,
            attempts_per_strategy=self.attempts_per_strategy,
        )
        if outcome.ok:
            return FetchResult(
                items=list(self.engine.reservations),
                source="remote",
                strategy=outcome.strategy,
            )

        cached = await self.cache.read(self.audience.cache_key)
        items = map_reservations(cached) if cached is not None else []
        self.engine.load(items)
        log.warning(
            "reservations_from_cache",
            audience=self.audience.value,
            cached=cached is not None,
            records=len(items),
        )
        return FetchResult(
            items=list(items),
            source="cache" if cached is not None else "empty",
            error=FETCH_DEGRADED_MESSAGE,
        )

    def view(self, query: ReservationQuery | None = None, *, today: date | None = None) -> list[Reservation]:
        """Displayed subset of the current collection."""
        return apply_query(self.engine.reservations, query, today=today)

    def counts(self) -> dict[str, int]:
        return status_counts(self.engine.reservations)

    async def cancel(self, reservation_id: str) -> MutationResult:
        return await self.engine.cancel(reservation_id)

    async def edit(self, edited: Reservation) -> MutationResult:
        return await self.engine.edit(edited)

    async def drain(self) -> None:
        await self.engine.drain()
