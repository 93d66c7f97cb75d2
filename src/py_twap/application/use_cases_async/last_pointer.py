from __future__ import annotations

from dataclasses import dataclass

from py_twap.application.dto.models import LAST_POINTER_KEY, LastPointerDTO
from py_twap.application.ports import AsyncUnitOfWork


@dataclass(slots=True)
class LastPointerRegistry:
    """Key-value accessor for the cursor to the latest sample and aggregate.

    Existence of the record is what distinguishes a fresh deployment from a
    running accumulation chain.
    """

    uow: AsyncUnitOfWork

    async def load(self) -> LastPointerDTO | None:
        return await self.uow.last_pointer.get(LAST_POINTER_KEY)

    async def save(self, pointer: LastPointerDTO) -> LastPointerDTO:
        pointer.key = LAST_POINTER_KEY
        return await self.uow.last_pointer.save(pointer)
