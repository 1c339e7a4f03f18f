"""In-memory entity store."""
from __future__ import annotations

import copy
from typing import Any, TypeVar

T = TypeVar("T")


class InMemoryStore:
    """Dict-backed store keyed by entity type name and entity id.

    Entities are copied on the way in and on the way out, so callers only
    ever see what was last saved.
    """

    def __init__(self) -> None:
        self._entities: dict[str, dict[str, Any]] = {}

    def load(self, entity_type: type[T], entity_id: str) -> T | None:
        entity = self._entities.get(entity_type.__name__, {}).get(entity_id)
        if entity is None:
            return None
        return copy.deepcopy(entity)

    def save(self, entity: Any) -> None:
        bucket = self._entities.setdefault(type(entity).__name__, {})
        bucket[entity.id] = copy.deepcopy(entity)

    def all(self, entity_type: type[T]) -> list[T]:
        bucket = self._entities.get(entity_type.__name__, {})
        return [copy.deepcopy(entity) for entity in bucket.values()]

    def count(self, entity_type: type) -> int:
        return len(self._entities.get(entity_type.__name__, {}))
