import pytest

from plant_registry.models import Plant
from plant_registry.services.registry import PlantRegistryService
from plant_registry.storage import InMemoryStorage


def make_plant(name: str, scientific_name: str = "Testus plantus", habitat: str = "Garden", fact: str = "Test fact") -> Plant:
    return Plant(name=name, scientific_name=scientific_name, habitat=habitat, fact=fact)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def registry(storage: InMemoryStorage) -> PlantRegistryService:
    # in-memory port so nothing touches disk
    return PlantRegistryService(storage)
