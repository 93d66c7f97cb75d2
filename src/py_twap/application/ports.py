from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from py_twap.application.dto.models import (
    AggregateDTO,
    LastPointerDTO,
    MetadataDTO,
    SampleDTO,
    TransactionCountSnapshotDTO,
)

__all__ = [
    "AsyncPoolReserveSource",
    "AsyncOracleFeedSource",
    "AsyncMetadataRepository",
    "AsyncSampleRepository",
    "AsyncAggregateRepository",
    "AsyncLastPointerRepository",
    "AsyncSnapshotRepository",
    "AsyncUnitOfWork",
]


@runtime_checkable
class AsyncPoolReserveSource(Protocol):
    """Reads current reserves of a two-token pool (unsigned integers)."""

    async def get_reserves(self, pair_address: str) -> tuple[int, int]: ...


@runtime_checkable
class AsyncOracleFeedSource(Protocol):
    """Reads the latest answer of a price feed (signed, 8-decimal fixed point)."""

    async def latest_answer(self, feed_address: str) -> int: ...


@runtime_checkable
class AsyncMetadataRepository(Protocol):
    """Singleton control record keyed by a fixed constant."""

    async def get(self, key: str) -> MetadataDTO | None: ...
    async def save(self, dto: MetadataDTO) -> MetadataDTO: ...


@runtime_checkable
class AsyncSampleRepository(Protocol):
    """Append-only price samples keyed by stringified sequence id."""

    async def get(self, sample_id: str) -> SampleDTO | None: ...
    async def add(self, dto: SampleDTO) -> SampleDTO: ...


@runtime_checkable
class AsyncAggregateRepository(Protocol):
    """Append-only accumulation chain nodes keyed by stringified sequence id."""

    async def get(self, aggregate_id: str) -> AggregateDTO | None: ...
    async def add(self, dto: AggregateDTO) -> AggregateDTO: ...


@runtime_checkable
class AsyncLastPointerRepository(Protocol):
    """Singleton cursor record."""

    async def get(self, key: str) -> LastPointerDTO | None: ...
    async def save(self, dto: LastPointerDTO) -> LastPointerDTO: ...


@runtime_checkable
class AsyncSnapshotRepository(Protocol):
    """Transaction count snapshots keyed by timestamp (upsert semantics)."""

    async def get(self, timestamp: int) -> TransactionCountSnapshotDTO | None: ...
    async def save(self, dto: TransactionCountSnapshotDTO) -> TransactionCountSnapshotDTO: ...


@runtime_checkable
class AsyncUnitOfWork(Protocol):
    """Async transactional boundary for one observation.

    Provides an awaitable context manager with access to repositories bound to
    the current transaction.
    """

    # context manager
    async def __aenter__(self) -> AsyncUnitOfWork: ...
    async def __aexit__(self, exc_type, exc: BaseException | None, tb: Any) -> None: ...

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...

    # repositories
    @property
    def metadata(self) -> AsyncMetadataRepository: ...

    @property
    def samples(self) -> AsyncSampleRepository: ...

    @property
    def aggregates(self) -> AsyncAggregateRepository: ...

    @property
    def last_pointer(self) -> AsyncLastPointerRepository: ...

    @property
    def snapshots(self) -> AsyncSnapshotRepository: ...
