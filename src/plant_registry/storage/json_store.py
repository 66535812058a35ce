from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..errors import StoreLoadError
from .base import PlantStorage


class JsonStorage(PlantStorage):
    """single json file holding the whole collection as a pretty-printed array"""

    def __init__(self, file_path: Optional[str] = None):
        # allow overriding via env var; default to data/plants.json
        default_path = os.environ.get("PLANT_DB_PATH", "data/plants.json")
        self.path = Path(file_path or default_path)

    def init(self) -> bool:
        """create an empty store; returns false when the file already exists"""
        if self.path.exists():
            return False
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.save_all([])
        return True

    # interface methods -----------------------------------------------
    def load_all(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            raise StoreLoadError(f"plant store not found: {self.path}")
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StoreLoadError(f"plant store {self.path} is unreadable: {e}") from e
        if not isinstance(data, list):
            raise StoreLoadError(f"plant store {self.path} must hold a json array")
        return data

    def save_all(self, items: Iterable[Dict[str, Any]]) -> None:
        # write a sibling temp file then swap it in so readers never see half a file
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp.write_text(json.dumps(list(items), ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
