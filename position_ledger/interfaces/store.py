"""Entity store protocol — persistence abstraction."""
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class EntityStore(Protocol):
    """Abstract interface for loading and saving ledger entities.

    Implementations must give read-your-writes consistency: a ``load`` after a
    ``save`` returns the saved state, and mutating a loaded entity has no
    effect until it is saved.
    """

    def load(self, entity_type: type[T], entity_id: str) -> T | None: ...

    def save(self, entity: Any) -> None: ...

    def all(self, entity_type: type[T]) -> list[T]: ...
