from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from py_twap.infrastructure.persistence.inmemory.repositories import (
    InMemoryAggregateRepository,
    InMemoryLastPointerRepository,
    InMemoryMetadataRepository,
    InMemorySampleRepository,
    InMemorySnapshotRepository,
)


@dataclass
class InMemoryUnitOfWork:
    """Dict-backed async Unit of Work.

    The same instance can be entered repeatedly (one context per observation);
    tables persist across contexts. On enter a copy of every table is taken;
    an exception inside the block or an explicit rollback restores it.
    """

    metadata_repo: InMemoryMetadataRepository = field(default_factory=InMemoryMetadataRepository)
    samples_repo: InMemorySampleRepository = field(default_factory=InMemorySampleRepository)
    aggregates_repo: InMemoryAggregateRepository = field(default_factory=InMemoryAggregateRepository)
    last_pointer_repo: InMemoryLastPointerRepository = field(default_factory=InMemoryLastPointerRepository)
    snapshots_repo: InMemorySnapshotRepository = field(default_factory=InMemorySnapshotRepository)
    _checkpoint: list[dict[Any, Any]] | None = field(default=None, init=False, repr=False)

    def _tables(self) -> tuple[Any, ...]:
        return (
            self.metadata_repo,
            self.samples_repo,
            self.aggregates_repo,
            self.last_pointer_repo,
            self.snapshots_repo,
        )

    async def __aenter__(self) -> InMemoryUnitOfWork:
        if self._checkpoint is not None:
            raise RuntimeError("InMemoryUnitOfWork is already active")
        self._checkpoint = [t.dump() for t in self._tables()]
        return self

    async def __aexit__(self, exc_type, exc: BaseException | None, tb: Any) -> None:  # noqa: D401
        try:
            if exc is not None:
                await self.rollback()
        finally:
            self._checkpoint = None

    @property
    def metadata(self) -> InMemoryMetadataRepository:  # noqa: D401
        return self.metadata_repo

    @property
    def samples(self) -> InMemorySampleRepository:  # noqa: D401
        return self.samples_repo

    @property
    def aggregates(self) -> InMemoryAggregateRepository:  # noqa: D401
        return self.aggregates_repo

    @property
    def last_pointer(self) -> InMemoryLastPointerRepository:  # noqa: D401
        return self.last_pointer_repo

    @property
    def snapshots(self) -> InMemorySnapshotRepository:  # noqa: D401
        return self.snapshots_repo

    async def commit(self) -> None:  # noqa: D401
        if self._checkpoint is not None:
            self._checkpoint = [t.dump() for t in self._tables()]

    async def rollback(self) -> None:  # noqa: D401
        if self._checkpoint is None:
            return None
        for table, rows in zip(self._tables(), self._checkpoint, strict=True):
            table.restore(dict(rows))
        return None
