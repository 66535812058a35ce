from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Optional

from .base import PlantStorage


class InMemoryStorage(PlantStorage):
    """keeps the collection in a list; used by tests and --backend memory"""

    def __init__(self, items: Optional[List[Dict[str, Any]]] = None):
        self.items: List[Dict[str, Any]] = copy.deepcopy(items or [])
        self.save_count = 0

    def load_all(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self.items)

    def save_all(self, items: Iterable[Dict[str, Any]]) -> None:
        self.items = copy.deepcopy(list(items))
        self.save_count += 1
