from .repositories import (
    InMemoryAggregateRepository,
    InMemoryLastPointerRepository,
    InMemoryMetadataRepository,
    InMemorySampleRepository,
    InMemorySnapshotRepository,
)
from .sources import StaticOracleFeedSource, StaticPoolReserveSource
from .uow import InMemoryUnitOfWork

__all__ = [
    "InMemoryAggregateRepository",
    "InMemoryLastPointerRepository",
    "InMemoryMetadataRepository",
    "InMemorySampleRepository",
    "InMemorySnapshotRepository",
    "InMemoryUnitOfWork",
    "StaticOracleFeedSource",
    "StaticPoolReserveSource",
]
