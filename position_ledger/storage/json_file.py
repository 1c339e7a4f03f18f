"""JSON-file backed entity store."""
from __future__ import annotations

import dataclasses
import json
import logging
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Any

from ..models import ENTITY_TYPES
from .memory import InMemoryStore

logger = logging.getLogger(__name__)

_FORMAT_VERSION = 1


def _is_decimal_field(field: dataclasses.Field) -> bool:
    return field.type in ("Decimal", Decimal)


def encode_entity(entity: Any) -> dict[str, Any]:
    """Turn an entity into JSON-safe primitives (Decimals become strings)."""
    return {
        f.name: str(getattr(entity, f.name)) if _is_decimal_field(f) else getattr(entity, f.name)
        for f in dataclasses.fields(entity)
    }


def decode_entity(entity_type: type, raw: dict[str, Any]) -> Any:
    """Rebuild an entity from its encoded form."""
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(entity_type):
        if f.name not in raw:
            continue
        value = raw[f.name]
        kwargs[f.name] = Decimal(value) if _is_decimal_field(f) else value
    return entity_type(**kwargs)


class JsonFileStore(InMemoryStore):
    """In-memory store that loads from and flushes to a single JSON file."""

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self._path = Path(path)
        if self._path.exists():
            self._read()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> None:
        payload = json.loads(self._path.read_text(encoding="utf-8"))
        version = payload.get("version")
        if version != _FORMAT_VERSION:
            raise ValueError(
                f"Unsupported ledger state version {version!r} in {self._path}"
            )
        loaded = 0
        for type_name, bucket in payload.get("entities", {}).items():
            entity_type = ENTITY_TYPES.get(type_name)
            if entity_type is None:
                raise ValueError(f"Unknown entity type '{type_name}' in {self._path}")
            for raw in bucket.values():
                super().save(decode_entity(entity_type, raw))
                loaded += 1
        logger.info("Loaded %d entities from %s", loaded, self._path)

    def flush(self) -> None:
        """Write every entity to disk atomically."""
        payload = {
            "version": _FORMAT_VERSION,
            "entities": {
                type_name: {
                    entity_id: encode_entity(entity)
                    for entity_id, entity in bucket.items()
                }
                for type_name, bucket in self._entities.items()
            },
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        _atomic_write(self._path, json.dumps(payload, indent=2, sort_keys=True))
        logger.debug("Flushed ledger state to %s", self._path)


def _atomic_write(path: Path, content: str) -> None:
    tmp = tempfile.NamedTemporaryFile("w", delete=False, dir=path.parent, encoding="utf-8")
    try:
        with tmp as f:
            f.write(content)
            f.flush()
        Path(tmp.name).replace(path)
    except Exception:
        Path(tmp.name).unlink(missing_ok=True)
        raise
