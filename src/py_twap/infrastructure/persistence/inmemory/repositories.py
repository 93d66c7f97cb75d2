from __future__ import annotations

from dataclasses import replace
from typing import Any

from py_twap.application.dto.models import (
    AggregateDTO,
    LastPointerDTO,
    MetadataDTO,
    SampleDTO,
    TransactionCountSnapshotDTO,
)

# Repositories store and hand out copies so that mutating a DTO never changes
# stored state without an explicit save.


class _Table:
    def __init__(self) -> None:
        self._rows: dict[Any, Any] = {}

    def dump(self) -> dict[Any, Any]:
        return {k: replace(v) for k, v in self._rows.items()}

    def restore(self, rows: dict[Any, Any]) -> None:
        self._rows = rows

    def __len__(self) -> int:
        return len(self._rows)

    # helper for tests
    def _delete(self, key: Any) -> None:
        self._rows.pop(key, None)


class InMemoryMetadataRepository(_Table):
    async def get(self, key: str) -> MetadataDTO | None:  # noqa: D401
        row = self._rows.get(key)
        return replace(row) if row else None

    async def save(self, dto: MetadataDTO) -> MetadataDTO:  # noqa: D401
        self._rows[dto.key] = replace(dto)
        return dto


class InMemorySampleRepository(_Table):
    async def get(self, sample_id: str) -> SampleDTO | None:  # noqa: D401
        row = self._rows.get(sample_id)
        return replace(row) if row else None

    async def add(self, dto: SampleDTO) -> SampleDTO:  # noqa: D401
        if dto.id in self._rows:
            raise ValueError(f"Sample already exists: {dto.id}")
        self._rows[dto.id] = replace(dto)
        return dto

    def list_all(self) -> list[SampleDTO]:
        return sorted((replace(r) for r in self._rows.values()), key=lambda r: int(r.id))


class InMemoryAggregateRepository(_Table):
    async def get(self, aggregate_id: str) -> AggregateDTO | None:  # noqa: D401
        row = self._rows.get(aggregate_id)
        return replace(row) if row else None

    async def add(self, dto: AggregateDTO) -> AggregateDTO:  # noqa: D401
        if dto.id in self._rows:
            raise ValueError(f"Aggregate already exists: {dto.id}")
        self._rows[dto.id] = replace(dto)
        return dto

    def list_all(self) -> list[AggregateDTO]:
        return sorted((replace(r) for r in self._rows.values()), key=lambda r: int(r.id))


class InMemoryLastPointerRepository(_Table):
    async def get(self, key: str) -> LastPointerDTO | None:  # noqa: D401
        row = self._rows.get(key)
        return replace(row) if row else None

    async def save(self, dto: LastPointerDTO) -> LastPointerDTO:  # noqa: D401
        self._rows[dto.key] = replace(dto)
        return dto


class InMemorySnapshotRepository(_Table):
    async def get(self, timestamp: int) -> TransactionCountSnapshotDTO | None:  # noqa: D401
        row = self._rows.get(timestamp)
        return replace(row) if row else None

    async def save(self, dto: TransactionCountSnapshotDTO) -> TransactionCountSnapshotDTO:  # noqa: D401
        self._rows[dto.timestamp] = replace(dto)
        return dto
