"""The repository contract every reservation backend satisfies."""

from abc import ABC, abstractmethod

from partybook.models.reservation import NaturalKey, ReservationRecord


class RepositoryAdapter(ABC):
    """A persistence backend holding reservation records.

    Implementations raise :class:`~partybook.repositories.resilience.RepositoryError`
    subclasses on failure. ``update`` is a whole-record replace matched by
    id or natural key; ``delete`` takes either.

    Attributes:
        name: Source name used for priority ordering and diagnostics.
        skipped: Rows the last ``list`` could not decode and left out.
    """

    name: str
    skipped: int = 0

    @abstractmethod
    async def list(self) -> list[ReservationRecord]:
        """Full scan of the backend."""

    @abstractmethod
    async def create(self, record: ReservationRecord) -> None: ...

    @abstractmethod
    async def update(self, record: ReservationRecord) -> None: ...

    @abstractmethod
    async def delete(self, key: str | NaturalKey) -> None: ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
