from __future__ import annotations


class StaticPoolReserveSource:
    """Pool reserve source backed by a dict; values can be changed between observations."""

    def __init__(self, reserves: dict[str, tuple[int, int]] | None = None) -> None:
        self._reserves: dict[str, tuple[int, int]] = {k.lower(): v for k, v in (reserves or {}).items()}

    def set_reserves(self, pair_address: str, reserve0: int, reserve1: int) -> None:
        self._reserves[pair_address.lower()] = (reserve0, reserve1)

    async def get_reserves(self, pair_address: str) -> tuple[int, int]:  # noqa: D401
        try:
            return self._reserves[pair_address.lower()]
        except KeyError:
            raise ValueError(f"Unknown pair: {pair_address}") from None


class StaticOracleFeedSource:
    """Oracle feed source returning configured answers (8-decimal fixed point)."""

    def __init__(self, answers: dict[str, int] | None = None) -> None:
        self._answers: dict[str, int] = {k.lower(): v for k, v in (answers or {}).items()}

    def set_answer(self, feed_address: str, answer: int) -> None:
        self._answers[feed_address.lower()] = answer

    async def latest_answer(self, feed_address: str) -> int:  # noqa: D401
        try:
            return self._answers[feed_address.lower()]
        except KeyError:
            raise ValueError(f"Unknown feed: {feed_address}") from None
