"""Asynchronous SQLAlchemy repositories (CRUD-only).

Each repository maps one ORM table to its DTO and exposes the method set of
the matching Protocol in ``py_twap.application.ports``. Weighting, pricing and
pointer bookkeeping live in the use cases.

Notes:
- Samples and aggregates are append-only: ``add`` refuses an existing id.
- Metadata, last pointer and snapshots use upsert semantics (``save``).
- All mutating methods call ``await session.flush()`` within the active txn.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from py_twap.application.dto.models import (
    AggregateDTO,
    LastPointerDTO,
    MetadataDTO,
    SampleDTO,
    TransactionCountSnapshotDTO,
)
from py_twap.infrastructure.persistence.sqlalchemy.models import (
    AggregateORM,
    LastPointerORM,
    MetadataORM,
    PriceSampleORM,
    TransactionCountSnapshotORM,
)

__all__ = [
    "AsyncSqlAlchemyMetadataRepository",
    "AsyncSqlAlchemySampleRepository",
    "AsyncSqlAlchemyAggregateRepository",
    "AsyncSqlAlchemyLastPointerRepository",
    "AsyncSqlAlchemySnapshotRepository",
]


class AsyncSqlAlchemyMetadataRepository:
    """Async repository for the singleton control record."""

    def __init__(self, session: AsyncSession) -> None:
        """Bind repository to an AsyncSession within a UoW transaction."""
        self.session = session

    async def get(self, key: str) -> MetadataDTO | None:
        """Return the control record stored under ``key`` or ``None``."""
        res = await self.session.execute(select(MetadataORM).where(MetadataORM.key == key))
        row = res.scalar_one_or_none()
        if not row:
            return None
        return MetadataDTO(
            next_sample_id=int(row.next_sample_id),
            transaction_count=int(row.transaction_count),
            key=row.key,
        )

    async def save(self, dto: MetadataDTO) -> MetadataDTO:
        """Insert or overwrite the control record."""
        res = await self.session.execute(select(MetadataORM).where(MetadataORM.key == dto.key))
        row = res.scalar_one_or_none()
        if not row:
            row = MetadataORM(key=dto.key)
            self.session.add(row)
        row.next_sample_id = dto.next_sample_id
        row.transaction_count = dto.transaction_count
        await self.session.flush()
        return dto


class AsyncSqlAlchemySampleRepository:
    """Async repository for price samples (append-only)."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_dto(row: PriceSampleORM) -> SampleDTO:
        return SampleDTO(
            id=row.id,
            timestamp=int(row.timestamp),
            block_height=int(row.block_height),
            raw_reserve_a=row.raw_reserve_a,
            price_a_to_b=row.price_a_to_b,
            price_b_to_c=row.price_b_to_c,
            price_composite=row.price_composite,
            source_address=row.source_address,
        )

    async def get(self, sample_id: str) -> SampleDTO | None:
        res = await self.session.execute(select(PriceSampleORM).where(PriceSampleORM.id == sample_id))
        row = res.scalar_one_or_none()
        return self._to_dto(row) if row else None

    async def add(self, dto: SampleDTO) -> SampleDTO:
        """Insert a new sample.

        Raises:
        - ValueError: if a sample with the same id already exists.
        """
        if await self.session.get(PriceSampleORM, dto.id) is not None:
            raise ValueError(f"Sample already exists: {dto.id}")
        self.session.add(
            PriceSampleORM(
                id=dto.id,
                timestamp=dto.timestamp,
                block_height=dto.block_height,
                raw_reserve_a=dto.raw_reserve_a,
                price_a_to_b=dto.price_a_to_b,
                price_b_to_c=dto.price_b_to_c,
                price_composite=dto.price_composite,
                source_address=dto.source_address,
            )
        )
        await self.session.flush()
        return dto

    async def list_all(self) -> list[SampleDTO]:
        """Return all samples ordered by timestamp, then block height."""
        res = await self.session.execute(
            select(PriceSampleORM).order_by(PriceSampleORM.timestamp, PriceSampleORM.block_height)
        )
        return [self._to_dto(r) for r in res.scalars().all()]


class AsyncSqlAlchemyAggregateRepository:
    """Async repository for accumulation chain nodes (append-only)."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_dto(row: AggregateORM) -> AggregateDTO:
        return AggregateDTO(
            id=row.id,
            numerator=row.numerator,
            denominator=row.denominator,
            timestamp=int(row.timestamp),
            block_height=int(row.block_height),
            source_address=row.source_address,
        )

    async def get(self, aggregate_id: str) -> AggregateDTO | None:
        res = await self.session.execute(select(AggregateORM).where(AggregateORM.id == aggregate_id))
        row = res.scalar_one_or_none()
        return self._to_dto(row) if row else None

    async def add(self, dto: AggregateDTO) -> AggregateDTO:
        """Insert a new aggregate.

        Raises:
        - ValueError: if an aggregate with the same id already exists.
        """
        if await self.session.get(AggregateORM, dto.id) is not None:
            raise ValueError(f"Aggregate already exists: {dto.id}")
        self.session.add(
            AggregateORM(
                id=dto.id,
                numerator=dto.numerator,
                denominator=dto.denominator,
                timestamp=dto.timestamp,
                block_height=dto.block_height,
                source_address=dto.source_address,
            )
        )
        await self.session.flush()
        return dto

    async def list_all(self) -> list[AggregateDTO]:
        """Return all aggregates ordered by timestamp, then block height."""
        res = await self.session.execute(
            select(AggregateORM).order_by(AggregateORM.timestamp, AggregateORM.block_height)
        )
        return [self._to_dto(r) for r in res.scalars().all()]


class AsyncSqlAlchemyLastPointerRepository:
    """Async repository for the singleton cursor record."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, key: str) -> LastPointerDTO | None:
        res = await self.session.execute(select(LastPointerORM).where(LastPointerORM.key == key))
        row = res.scalar_one_or_none()
        if not row:
            return None
        return LastPointerDTO(
            last_sample_id=row.last_sample_id,
            last_aggregate_id=row.last_aggregate_id,
            key=row.key,
        )

    async def save(self, dto: LastPointerDTO) -> LastPointerDTO:
        res = await self.session.execute(select(LastPointerORM).where(LastPointerORM.key == dto.key))
        row = res.scalar_one_or_none()
        if not row:
            row = LastPointerORM(key=dto.key)
            self.session.add(row)
        row.last_sample_id = dto.last_sample_id
        row.last_aggregate_id = dto.last_aggregate_id
        await self.session.flush()
        return dto


class AsyncSqlAlchemySnapshotRepository:
    """Async repository for per-timestamp transaction count snapshots."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, timestamp: int) -> TransactionCountSnapshotDTO | None:
        row = await self.session.get(TransactionCountSnapshotORM, timestamp)
        if not row:
            return None
        return TransactionCountSnapshotDTO(
            timestamp=int(row.timestamp),
            block_height=int(row.block_height) if row.block_height is not None else None,
            count=int(row.count),
        )

    async def save(self, dto: TransactionCountSnapshotDTO) -> TransactionCountSnapshotDTO:
        """Insert or overwrite the snapshot for ``dto.timestamp``."""
        row = await self.session.get(TransactionCountSnapshotORM, dto.timestamp)
        if not row:
            row = TransactionCountSnapshotORM(timestamp=dto.timestamp)
            self.session.add(row)
        row.block_height = dto.block_height
        row.count = dto.count
        await self.session.flush()
        return dto
