from .models import Plant, normalize_name
from .services.registry import PlantRegistryService

__all__ = ["Plant", "PlantRegistryService", "normalize_name"]
