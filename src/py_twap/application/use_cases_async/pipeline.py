from __future__ import annotations

from dataclasses import dataclass, field

from py_twap.application.dto.models import ObservationDTO, ObservationResult
from py_twap.application.ports import (
    AsyncOracleFeedSource,
    AsyncPoolReserveSource,
    AsyncUnitOfWork,
)
from py_twap.application.use_cases_async.samples import AsyncBuildPriceSample
from py_twap.application.use_cases_async.sequence import AsyncSequenceAllocator
from py_twap.application.use_cases_async.transaction_counter import AsyncTransactionCounter
from py_twap.application.use_cases_async.weighted_average import AsyncUpdateWeightedAverage
from py_twap.domain.errors import ValidationError
from py_twap.domain.weighting import WeightingPolicy
from py_twap.infrastructure.logging.config import bind_observation_context, get_logger


def _validate_observation(observation: ObservationDTO) -> None:
    if not isinstance(observation.source_address, str) or not observation.source_address.strip():
        raise ValidationError("Observation source_address must be a non-empty string")
    if observation.block_height < 0:
        raise ValidationError(f"Negative block_height: {observation.block_height}")
    if observation.timestamp < 0:
        raise ValidationError(f"Negative timestamp: {observation.timestamp}")


@dataclass(slots=True)
class AsyncProcessObservation:
    """Run the full per-observation pipeline inside one unit of work.

    Contract:
      AsyncProcessObservation(uow, reserves, oracle, feed_address, policy, sequence_start)(observation)
        -> ObservationResult

    Steps:
      1. Validate the observation (ValidationError).
      2. Allocate the sample id (pre-increment value).
      3. Read pool reserves and oracle answer, derive prices (DivisionByZeroError
         on a zero ``reserve1``; nothing has been written yet).
      4. Increment the global transaction count and snapshot it at the observation timestamp.
      5. Persist the Sample.
      6. Fold the Aggregate and move the last pointer (StateCorruptionError on a broken chain).
      7. Advance the sequence.

    Notes:
      - Observations must be delivered one at a time in chain order; the caller
        owns the transaction (commit on success, rollback on any error).
      - ``observation.kind`` is logged only; every trigger is processed the same way.
    """

    uow: AsyncUnitOfWork
    reserves: AsyncPoolReserveSource
    oracle: AsyncOracleFeedSource
    feed_address: str
    policy: WeightingPolicy = field(default_factory=WeightingPolicy)
    sequence_start: int = 1

    async def __call__(self, observation: ObservationDTO) -> ObservationResult:
        """Process one observation and return the records it produced."""
        _validate_observation(observation)
        log = get_logger(__name__)

        allocator = AsyncSequenceAllocator(self.uow, self.sequence_start)
        counter = AsyncTransactionCounter(self.uow, self.sequence_start)
        builder = AsyncBuildPriceSample(self.uow, self.reserves, self.oracle, self.feed_address)
        updater = AsyncUpdateWeightedAverage(self.uow, self.policy)

        sample_id = await allocator.allocate()
        with bind_observation_context(
            sample_id=sample_id,
            source_address=observation.source_address,
            block_height=observation.block_height,
        ):
            quote = await builder.quote(observation)
            count = await counter.increment_global_count()
            await counter.snapshot(observation.timestamp, observation.block_height, count)
            sample = await builder(observation, sample_id, quote)
            update = await updater(sample)
            next_id = await allocator.advance()
            log.debug(
                "observation_processed",
                kind=observation.kind.value,
                price_composite=str(sample.price_composite),
                weight=update.weight,
                bootstrapped=update.bootstrapped,
                transaction_count=count,
                next_sample_id=next_id,
            )
        return ObservationResult(
            sample_id=sample_id,
            sample=sample,
            aggregate=update.aggregate,
            transaction_count=count,
            bootstrapped=update.bootstrapped,
        )
