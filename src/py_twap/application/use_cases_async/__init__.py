from .last_pointer import LastPointerRegistry
from .metadata import ensure_metadata, init_metadata, load_metadata
from .pipeline import AsyncProcessObservation
from .samples import AsyncBuildPriceSample
from .sequence import AsyncSequenceAllocator
from .transaction_counter import AsyncTransactionCounter
from .weighted_average import AggregateUpdate, AsyncUpdateWeightedAverage

__all__ = [
    "AggregateUpdate",
    "AsyncBuildPriceSample",
    "AsyncProcessObservation",
    "AsyncSequenceAllocator",
    "AsyncTransactionCounter",
    "AsyncUpdateWeightedAverage",
    "LastPointerRegistry",
    "ensure_metadata",
    "init_metadata",
    "load_metadata",
]
