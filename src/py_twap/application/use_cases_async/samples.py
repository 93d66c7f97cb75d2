from __future__ import annotations

from dataclasses import dataclass

from py_twap.application.dto.models import ObservationDTO, SampleDTO
from py_twap.application.ports import (
    AsyncOracleFeedSource,
    AsyncPoolReserveSource,
    AsyncUnitOfWork,
)
from py_twap.domain.errors import StateCorruptionError
from py_twap.domain.pricing import PriceQuote, derive_price_quote


@dataclass(slots=True)
class AsyncBuildPriceSample:
    """Derive fixed-point prices for an observation and persist them as a Sample.

    Contract:
      AsyncBuildPriceSample(uow, reserves, oracle, feed_address)(observation, sample_id) -> SampleDTO

    Steps:
      1. Read ``(reserve0, reserve1)`` of ``observation.source_address`` from the pool source.
      2. Read ``latest_answer`` of ``feed_address`` from the oracle source.
      3. Derive ``price_a_to_b``, ``price_b_to_c`` and ``price_composite`` (domain.pricing).
      4. Persist the Sample under ``str(sample_id)`` with ``raw_reserve_a = reserve0``.

    Error classification:
      - DivisionByZeroError: ``reserve1 == 0``; raised before anything is written.
      - ValidationError: negative reserves.
      - StateCorruptionError: a sample already exists under ``sample_id`` (samples are immutable).

    Notes:
      - ``quote`` is exposed separately so callers can derive prices before any
        other write of the observation happens.
    """

    uow: AsyncUnitOfWork
    reserves: AsyncPoolReserveSource
    oracle: AsyncOracleFeedSource
    feed_address: str

    async def quote(self, observation: ObservationDTO) -> PriceQuote:
        """Read both external sources and derive prices without persisting."""
        reserve0, reserve1 = await self.reserves.get_reserves(observation.source_address)
        answer = await self.oracle.latest_answer(self.feed_address)
        return derive_price_quote(int(reserve0), int(reserve1), int(answer))

    async def __call__(
        self,
        observation: ObservationDTO,
        sample_id: int,
        quote: PriceQuote | None = None,
    ) -> SampleDTO:
        """Persist and return the sample for ``observation`` (deriving prices if needed)."""
        if quote is None:
            quote = await self.quote(observation)
        key = str(sample_id)
        if await self.uow.samples.get(key) is not None:
            raise StateCorruptionError(f"Sample already exists: {key}")
        sample = SampleDTO(
            id=key,
            timestamp=observation.timestamp,
            block_height=observation.block_height,
            raw_reserve_a=quote.reserve0,
            price_a_to_b=quote.price_a_to_b,
            price_b_to_c=quote.price_b_to_c,
            price_composite=quote.price_composite,
            source_address=observation.source_address,
        )
        return await self.uow.samples.add(sample)
