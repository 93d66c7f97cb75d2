from __future__ import annotations

from dataclasses import dataclass

from py_twap.application.dto.models import TransactionCountSnapshotDTO
from py_twap.application.ports import AsyncUnitOfWork
from py_twap.application.use_cases_async.metadata import ensure_metadata


@dataclass(slots=True)
class AsyncTransactionCounter:
    """Purpose:
    Maintain the global count of processed observations and a per-timestamp
    snapshot of it.

    Parameters:
    - uow: AsyncUnitOfWork.
    - sequence_start: Used only if the metadata record has to be created here.

    Side effects:
    - Two writes per observation: metadata (increment) and snapshot (upsert).

    Notes:
    - Snapshots are keyed by timestamp. Observations sharing a timestamp
      overwrite the same record; the last count wins.
    """

    uow: AsyncUnitOfWork
    sequence_start: int = 1

    async def increment_global_count(self) -> int:
        """Increment ``transaction_count`` by one and return the new value."""
        metadata = await ensure_metadata(self.uow, self.sequence_start)
        metadata.transaction_count += 1
        saved = await self.uow.metadata.save(metadata)
        return saved.transaction_count

    async def get_or_create_snapshot(self, timestamp: int) -> TransactionCountSnapshotDTO:
        """Return the snapshot for ``timestamp``, persisting an empty one if unseen."""
        record = await self.uow.snapshots.get(timestamp)
        if record is None:
            record = await self.uow.snapshots.save(TransactionCountSnapshotDTO(timestamp=timestamp))
        return record

    async def snapshot(self, timestamp: int, block_height: int, count: int) -> TransactionCountSnapshotDTO:
        """Record ``count`` as the global count at ``timestamp`` (overwrite on repeat)."""
        record = await self.get_or_create_snapshot(timestamp)
        record.timestamp = timestamp
        record.block_height = block_height
        record.count = count
        return await self.uow.snapshots.save(record)
