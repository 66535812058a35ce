from __future__ import annotations

from typing import Optional

from .config import Settings
from .services.registry import PlantRegistryService
from .storage import InMemoryStorage, JsonStorage, PlantStorage
from .storage.dynamodb_store import DynamoStorage


def get_storage(settings: Settings, db_path: Optional[str] = None, backend: Optional[str] = None) -> PlantStorage:
    # backend resolution order: flag > env BACKEND > default json
    backend = (backend or settings.backend or "json").lower()
    if backend in ("ddb", "dynamodb"):
        return DynamoStorage(table_name=settings.ddb_table, region=settings.aws_region)
    if backend == "memory":
        return InMemoryStorage()
    return JsonStorage(file_path=db_path or settings.db_path)


def get_registry(settings: Optional[Settings] = None, db_path: Optional[str] = None, backend: Optional[str] = None) -> PlantRegistryService:
    """build the one registry for this process; raises StoreLoadError on a bad store"""
    settings = settings or Settings()
    return PlantRegistryService(get_storage(settings, db_path, backend))
