from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from ..errors import PlantConflictError, PlantNotFoundError, StoreLoadError
from ..models import Plant, normalize_name
from ..storage.base import PlantStorage

logger = logging.getLogger(__name__)


class PlantRegistryService:
    """owns the plant collection: name uniqueness, rename-safe updates, persistence

    records live in memory keyed by normalized name; the whole collection is
    written back through the storage port after every successful mutation.
    """

    def __init__(self, storage: PlantStorage):
        self.storage = storage
        self._lock = threading.RLock()
        self._plants: Dict[str, Plant] = {}
        self._load()

    # helpers ----------------------------------------------------------
    def _load(self) -> None:
        # StoreLoadError propagates; entry points decide how to exit
        for row in self.storage.load_all():
            try:
                plant = Plant.from_dict(row)
            except (ValueError, TypeError, AttributeError) as e:
                raise StoreLoadError(f"corrupt plant record in store: {e}") from e
            if plant.key in self._plants:
                logger.warning("skipping duplicate plant %r in store (kept %r)", plant.name, self._plants[plant.key].name)
                continue
            self._plants[plant.key] = plant
        logger.info("loaded %d plants", len(self._plants))

    def _persist(self) -> None:
        self.storage.save_all([p.to_dict() for p in self._plants.values()])

    def _commit(self, previous: Dict[str, Plant]) -> None:
        # persist or put the map back the way it was
        try:
            self._persist()
        except Exception:
            self._plants = previous
            raise

    # crud -------------------------------------------------------------
    def list(self) -> List[Plant]:
        with self._lock:
            return [p.copy() for p in self._plants.values()]

    def search(self, query: Optional[str]) -> List[Plant]:
        # case-insensitive substring over every text field
        q = (query or "").strip().lower()
        with self._lock:
            if not q:
                return [p.copy() for p in self._plants.values()]
            return [
                p.copy()
                for p in self._plants.values()
                if any(q in value.lower() for value in (p.name, p.scientific_name, p.habitat, p.fact))
            ]

    def get(self, name: str) -> Optional[Plant]:
        with self._lock:
            plant = self._plants.get(normalize_name(name))
            return plant.copy() if plant else None

    def create(self, plant: Plant) -> Plant:
        with self._lock:
            if plant.key in self._plants:
                raise PlantConflictError(f"Plant '{plant.name}' already exists.")
            previous = dict(self._plants)
            stored = plant.copy()
            self._plants[stored.key] = stored
            self._commit(previous)
            return stored.copy()

    def update(self, original_name: str, plant: Plant) -> Plant:
        old_key = normalize_name(original_name)
        with self._lock:
            if old_key not in self._plants:
                raise PlantNotFoundError(f"Plant '{original_name}' not found.")
            new_key = plant.key
            if new_key != old_key and new_key in self._plants:
                raise PlantConflictError(f"Plant '{plant.name}' already exists.")
            previous = dict(self._plants)
            stored = plant.copy()
            stored.touch()
            if new_key != old_key:
                del self._plants[old_key]
            self._plants[new_key] = stored
            self._commit(previous)
            return stored.copy()

    def delete(self, name: str) -> bool:
        with self._lock:
            previous = dict(self._plants)
            removed = self._plants.pop(normalize_name(name), None)
            if removed is None:
                return False
            self._commit(previous)
            return True

    def count(self) -> int:
        with self._lock:
            return len(self._plants)
