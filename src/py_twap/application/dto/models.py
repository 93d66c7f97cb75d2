from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Explicit public export surface for DTOs
__all__ = [
    "METADATA_KEY",
    "LAST_POINTER_KEY",
    "ObservationKind",
    "ObservationDTO",
    "MetadataDTO",
    "SampleDTO",
    "AggregateDTO",
    "LastPointerDTO",
    "TransactionCountSnapshotDTO",
    "ObservationResult",
]

METADATA_KEY = "metadata"
LAST_POINTER_KEY = "twapdata"


class ObservationKind(str, Enum):
    """Chain event that triggered a recompute. Informational only."""

    SWAP = "swap"
    MINT = "mint"
    BURN = "burn"
    SYNC = "sync"
    TRANSFER = "transfer"
    OTHER = "other"


@dataclass(slots=True)
class ObservationDTO:
    """One observation delivered by the event source, in total chain order."""

    source_address: str
    block_height: int
    timestamp: int
    kind: ObservationKind = ObservationKind.OTHER


@dataclass(slots=True)
class MetadataDTO:
    """Singleton control record: next sample id and global transaction count."""

    next_sample_id: int
    transaction_count: int
    key: str = METADATA_KEY


@dataclass(slots=True)
class SampleDTO:
    """Immutable price sample; prices are 18-decimal fixed-point integers."""

    id: str
    timestamp: int
    block_height: int
    raw_reserve_a: int
    price_a_to_b: int
    price_b_to_c: int
    price_composite: int
    source_address: str


@dataclass(slots=True)
class AggregateDTO:
    """Node of the accumulation chain: cumulative weighted sums up to its sample."""

    id: str
    numerator: int
    denominator: int
    timestamp: int
    block_height: int
    source_address: str


@dataclass(slots=True)
class LastPointerDTO:
    """Cursor to the most recent sample and aggregate."""

    last_sample_id: str
    last_aggregate_id: str
    key: str = LAST_POINTER_KEY


@dataclass(slots=True)
class TransactionCountSnapshotDTO:
    """Global transaction count as of a timestamp (one record per timestamp)."""

    timestamp: int
    block_height: int | None = None
    count: int = 0


@dataclass(slots=True)
class ObservationResult:
    """Outcome of processing one observation."""

    sample_id: int
    sample: SampleDTO
    aggregate: AggregateDTO
    transaction_count: int
    bootstrapped: bool
