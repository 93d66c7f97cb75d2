from __future__ import annotations

from py_twap.application.dto.models import METADATA_KEY, MetadataDTO
from py_twap.application.ports import AsyncUnitOfWork
from py_twap.domain.errors import ValidationError


async def load_metadata(uow: AsyncUnitOfWork) -> MetadataDTO | None:
    """Return the metadata singleton or ``None`` before the first observation."""
    return await uow.metadata.get(METADATA_KEY)


async def init_metadata(uow: AsyncUnitOfWork, sequence_start: int) -> MetadataDTO:
    """Create and persist the metadata singleton; call only when it is absent."""
    if sequence_start < 0:
        raise ValidationError("sequence_start must be >= 0")
    return await uow.metadata.save(MetadataDTO(next_sample_id=sequence_start, transaction_count=0))


async def ensure_metadata(uow: AsyncUnitOfWork, sequence_start: int) -> MetadataDTO:
    metadata = await load_metadata(uow)
    if metadata is None:
        metadata = await init_metadata(uow, sequence_start)
    return metadata
