from __future__ import annotations

from typing import Any, Dict, Iterable, List, Protocol


class PlantStorage(Protocol):
    """persistence port injected into the registry (json file, memory, dynamodb)"""

    def load_all(self) -> List[Dict[str, Any]]:
        """return every persisted record; raise StoreLoadError if unreadable"""
        ...

    def save_all(self, items: Iterable[Dict[str, Any]]) -> None:
        """overwrite the persisted collection with items"""
        ...
