from .base import PlantStorage
from .json_store import JsonStorage
from .memory_store import InMemoryStorage

__all__ = ["PlantStorage", "JsonStorage", "InMemoryStorage"]
