from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from catalog.db import connect, list_card_rows
from catalog.entities import Entity, entities_from_rows

logger = logging.getLogger(__name__)

SUGGEST_MIN_QUERY_LENGTH = 2
SUGGEST_DEFAULT_LIMIT = 8


class EntityCatalog:
    """Read-only set of entities for one process lifetime."""

    def __init__(self, entities: Iterable[Entity], unknowns: Sequence[Dict[str, Any]] = ()):
        self._entities: Tuple[Entity, ...] = tuple(sorted(entities, key=lambda e: e.id))
        self._by_id: Dict[int, Entity] = {e.id: e for e in self._entities}
        self._playable: Tuple[Entity, ...] = tuple(e for e in self._entities if e.is_playable)
        self.unknowns: Tuple[Dict[str, Any], ...] = tuple(dict(u) for u in unknowns)

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self):
        return iter(self._entities)

    @property
    def entities(self) -> Tuple[Entity, ...]:
        return self._entities

    def playable(self) -> Tuple[Entity, ...]:
        return self._playable

    def get(self, entity_id: int) -> Optional[Entity]:
        return self._by_id.get(entity_id)

    def find_by_name(self, name: str) -> Optional[Entity]:
        token = (name or "").strip().casefold()
        if token == "":
            return None
        for entity in self._playable:
            if entity.name.casefold() == token:
                return entity
        return None

    def where(self, test: Callable[[Entity], bool]) -> List[Entity]:
        return [e for e in self._playable if test(e)]

    def count_where(self, test: Callable[[Entity], bool]) -> int:
        return sum(1 for e in self._playable if test(e))

    def suggest(
        self,
        query: str,
        limit: int = SUGGEST_DEFAULT_LIMIT,
        exclude_ids: Iterable[int] = (),
    ) -> List[Entity]:
        term = (query or "").strip().casefold()
        if len(term) < SUGGEST_MIN_QUERY_LENGTH:
            return []
        excluded = set(exclude_ids)
        out: List[Entity] = []
        for entity in self._playable:
            if entity.id in excluded:
                continue
            if term not in entity.name.casefold():
                continue
            out.append(entity)
            if len(out) >= limit:
                break
        return out

    def summary(self) -> Dict[str, Any]:
        by_category: Dict[str, int] = {}
        by_rarity: Dict[str, int] = {}
        for entity in self._playable:
            by_category[entity.category] = by_category.get(entity.category, 0) + 1
            by_rarity[entity.rarity] = by_rarity.get(entity.rarity, 0) + 1
        return {
            "total_entities": len(self._entities),
            "playable_entities": len(self._playable),
            "by_category": dict(sorted(by_category.items())),
            "by_rarity": dict(sorted(by_rarity.items())),
            "skipped_rows": len(self.unknowns),
        }


class CatalogProvider:
    """Loads an EntityCatalog once and hands out the same instance afterwards."""

    def __init__(self) -> None:
        self._catalog: EntityCatalog | None = None

    def _load(self) -> EntityCatalog:
        raise NotImplementedError

    def get_catalog(self) -> EntityCatalog:
        if self._catalog is None:
            self._catalog = self._load()
            if self._catalog.unknowns:
                logger.warning(
                    "catalog loaded with %d skipped rows (%s)",
                    len(self._catalog.unknowns),
                    type(self).__name__,
                )
        return self._catalog


class StaticCatalogProvider(CatalogProvider):
    def __init__(self, entities: Iterable[Entity]):
        super().__init__()
        self._entities = list(entities)

    def _load(self) -> EntityCatalog:
        return EntityCatalog(self._entities)


class JsonCatalogProvider(CatalogProvider):
    def __init__(self, path: Path | str):
        super().__init__()
        self.path = Path(path)

    def _load(self) -> EntityCatalog:
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        rows = raw.get("cards") if isinstance(raw, dict) else raw
        if not isinstance(rows, list):
            raise ValueError(f"catalog JSON at {self.path} has no card list")
        entities, unknowns = entities_from_rows([r for r in rows if isinstance(r, dict)])
        return EntityCatalog(entities, unknowns)


class SqliteCatalogProvider(CatalogProvider):
    def _load(self) -> EntityCatalog:
        with connect() as con:
            rows = list_card_rows(con)
        entities, unknowns = entities_from_rows(rows)
        logger.debug("loaded %d entities from sqlite catalog", len(entities))
        return EntityCatalog(entities, unknowns)
