from __future__ import annotations

from dataclasses import dataclass

from py_twap.application.ports import AsyncUnitOfWork
from py_twap.application.use_cases_async.metadata import ensure_metadata


@dataclass(slots=True)
class AsyncSequenceAllocator:
    """Purpose:
    Hand out monotonically increasing sample ids.

    Parameters:
    - uow: AsyncUnitOfWork.
    - sequence_start: First id issued when the metadata record does not exist yet.

    Notes:
    - ``allocate`` reads without mutating; ``advance`` increments by exactly one.
      The pipeline calls allocate first and advance last, so new records are
      keyed by the pre-increment value.
    - The only writer of ``MetadataDTO.next_sample_id``.
    """

    uow: AsyncUnitOfWork
    sequence_start: int = 1

    async def allocate(self) -> int:
        """Return the id the current observation will use."""
        metadata = await ensure_metadata(self.uow, self.sequence_start)
        return metadata.next_sample_id

    async def advance(self) -> int:
        """Consume the current id and return the next one."""
        metadata = await ensure_metadata(self.uow, self.sequence_start)
        metadata.next_sample_id += 1
        saved = await self.uow.metadata.save(metadata)
        return saved.next_sample_id
