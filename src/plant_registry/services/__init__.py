from .registry import PlantRegistryService

__all__ = ["PlantRegistryService"]
