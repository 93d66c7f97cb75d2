from __future__ import annotations

from dataclasses import dataclass, field

from py_twap.application.dto.models import AggregateDTO, LastPointerDTO, SampleDTO
from py_twap.application.ports import AsyncUnitOfWork
from py_twap.application.use_cases_async.last_pointer import LastPointerRegistry
from py_twap.domain.errors import StateCorruptionError
from py_twap.domain.weighting import SamplePoint, WeightedSum, WeightingPolicy


def _point(sample: SampleDTO) -> SamplePoint:
    return SamplePoint(
        id=int(sample.id),
        timestamp=sample.timestamp,
        raw_reserve_a=sample.raw_reserve_a,
        price_composite=sample.price_composite,
    )


@dataclass(slots=True)
class AggregateUpdate:
    """Result of one updater run."""

    aggregate: AggregateDTO
    previous: AggregateDTO | None
    weight: int

    @property
    def bootstrapped(self) -> bool:
        return self.previous is None


@dataclass(slots=True)
class AsyncUpdateWeightedAverage:
    """Fold a freshly written sample into the running weighted-average chain.

    Contract:
      AsyncUpdateWeightedAverage(uow, policy)(sample) -> AggregateUpdate

    States:
      - Uninitialized (no last pointer): write a ``0/0`` aggregate under the
        sample id and create the pointer. No weighting happens.
      - Running: load the previous sample and aggregate through the pointer,
        weight the interval per ``policy``, add ``previous.price_composite * weight``
        to the numerator and ``weight`` to the denominator, write the new
        aggregate under the sample id, then move the pointer.

    Error classification:
      - StateCorruptionError: the pointer references a missing sample or
        aggregate, or an aggregate already exists under the sample id. The
        chain is never re-seeded in that case.

    Notes:
      - The pointer is always written after the records it references.
      - A zero weight (identical timestamps in time mode) yields an aggregate
        numerically equal to the previous one.
    """

    uow: AsyncUnitOfWork
    policy: WeightingPolicy = field(default_factory=WeightingPolicy)

    async def __call__(self, sample: SampleDTO) -> AggregateUpdate:
        registry = LastPointerRegistry(self.uow)
        pointer = await registry.load()
        if pointer is None:
            return await self._bootstrap(registry, sample)
        return await self._fold(registry, pointer, sample)

    async def _bootstrap(self, registry: LastPointerRegistry, sample: SampleDTO) -> AggregateUpdate:
        seed = WeightedSum.bootstrap()
        aggregate = await self._write_aggregate(sample, seed)
        await registry.save(LastPointerDTO(last_sample_id=sample.id, last_aggregate_id=aggregate.id))
        return AggregateUpdate(aggregate=aggregate, previous=None, weight=0)

    async def _fold(
        self,
        registry: LastPointerRegistry,
        pointer: LastPointerDTO,
        sample: SampleDTO,
    ) -> AggregateUpdate:
        prev_sample = await self.uow.samples.get(pointer.last_sample_id)
        if prev_sample is None:
            raise StateCorruptionError(f"Last pointer references missing sample: {pointer.last_sample_id}")
        prev_aggregate = await self.uow.aggregates.get(pointer.last_aggregate_id)
        if prev_aggregate is None:
            raise StateCorruptionError(f"Last pointer references missing aggregate: {pointer.last_aggregate_id}")

        previous, current = _point(prev_sample), _point(sample)
        weight = self.policy.weight(previous, current)
        state = WeightedSum(prev_aggregate.numerator, prev_aggregate.denominator).fold(
            previous.price_composite, weight
        )
        aggregate = await self._write_aggregate(sample, state)

        pointer.last_sample_id = sample.id
        pointer.last_aggregate_id = aggregate.id
        await registry.save(pointer)
        return AggregateUpdate(aggregate=aggregate, previous=prev_aggregate, weight=weight)

    async def _write_aggregate(self, sample: SampleDTO, state: WeightedSum) -> AggregateDTO:
        if await self.uow.aggregates.get(sample.id) is not None:
            raise StateCorruptionError(f"Aggregate already exists: {sample.id}")
        return await self.uow.aggregates.add(
            AggregateDTO(
                id=sample.id,
                numerator=state.numerator,
                denominator=state.denominator,
                timestamp=sample.timestamp,
                block_height=sample.block_height,
                source_address=sample.source_address,
            )
        )
