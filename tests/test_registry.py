from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

import pytest

from conftest import make_plant
from plant_registry.errors import PlantConflictError, PlantNotFoundError, StoreLoadError
from plant_registry.models import Plant
from plant_registry.services.registry import PlantRegistryService
from plant_registry.storage import InMemoryStorage


def names(registry: PlantRegistryService) -> set:
    return {p.name for p in registry.list()}


def test_starts_empty(registry):
    assert registry.list() == []
    assert registry.count() == 0


def test_create_distinct_names_lists_exactly_those(registry):
    for n in ["Rose", "Tulip", "Daisy", "Fern"]:
        registry.create(make_plant(n))
    assert names(registry) == {"Rose", "Tulip", "Daisy", "Fern"}


def test_create_persists_every_time(registry, storage):
    registry.create(make_plant("Rose"))
    registry.create(make_plant("Tulip"))
    assert storage.save_count == 2
    assert [it["name"] for it in storage.items] == ["Rose", "Tulip"]


def test_create_duplicate_name_conflicts_and_leaves_store_unchanged(registry, storage):
    registry.create(make_plant("Daisy", scientific_name="Bellis perennis"))
    with pytest.raises(PlantConflictError) as exc:
        registry.create(make_plant("DAISY", scientific_name="Different name"))
    assert "DAISY" in str(exc.value)
    assert registry.count() == 1
    assert registry.get("daisy").scientific_name == "Bellis perennis"
    assert storage.save_count == 1


def test_create_does_not_share_the_callers_object(registry):
    plant = make_plant("Orchid")
    registry.create(plant)
    plant.habitat = "changed outside"
    assert registry.get("Orchid").habitat == "Garden"


def test_get_is_case_insensitive(registry):
    registry.create(make_plant("Tulip"))
    found = registry.get("TULIP")
    assert found is not None
    assert found.name == "Tulip"


def test_get_missing_returns_none(registry):
    assert registry.get("NonExistentPlant12345") is None


def test_update_existing_changes_fields(registry):
    registry.create(make_plant("Orchid", scientific_name="Orchidaceae", habitat="Tropical"))
    registry.update("Orchid", make_plant("Orchid", scientific_name="Updated scientific name", habitat="Updated habitat"))
    result = registry.get("Orchid")
    assert result.scientific_name == "Updated scientific name"
    assert result.habitat == "Updated habitat"


def test_update_missing_raises_not_found_and_leaves_store_unchanged(registry, storage):
    registry.create(make_plant("Rose"))
    with pytest.raises(PlantNotFoundError):
        registry.update("Non Existing Plant 12345", make_plant("Non Existing Plant 12345"))
    assert names(registry) == {"Rose"}
    assert storage.save_count == 1


def test_rename_onto_existing_name_conflicts(registry):
    registry.create(make_plant("Lily", scientific_name="Lilium"))
    registry.create(make_plant("Iris", scientific_name="Iridaceae"))
    with pytest.raises(PlantConflictError) as exc:
        registry.update("Lily", make_plant("Iris", scientific_name="Lilium"))
    assert "Iris" in str(exc.value)
    # both records untouched
    assert registry.get("Lily").scientific_name == "Lilium"
    assert registry.get("Iris").scientific_name == "Iridaceae"
    assert registry.count() == 2


def test_rename_to_fresh_name_moves_the_record(registry):
    original = make_plant("Rename Test Plant Original", scientific_name="Testus renamus")
    original.updated = datetime.now() - timedelta(days=1)
    registry.create(original)

    registry.update("Rename Test Plant Original", make_plant("Rename Test Plant New", scientific_name="Testus renamus"))

    assert registry.get("Rename Test Plant Original") is None
    result = registry.get("rename test plant new")
    assert result is not None
    assert result.scientific_name == "Testus renamus"
    assert result.updated > original.updated
    assert registry.count() == 1


def test_rename_changing_only_case_is_allowed(registry):
    registry.create(make_plant("sunflower"))
    updated = registry.update("SUNFLOWER", make_plant("Sunflower"))
    assert updated.name == "Sunflower"
    assert names(registry) == {"Sunflower"}


def test_delete_then_delete_again(registry):
    registry.create(make_plant("Delete Test Plant"))
    assert registry.delete("Delete Test Plant") is True
    assert registry.get("Delete Test Plant") is None
    assert registry.delete("Delete Test Plant") is False


def test_delete_is_case_insensitive(registry):
    registry.create(make_plant("Daisy"))
    assert registry.delete("DAISY") is True
    assert registry.list() == []


def test_delete_missing_does_not_persist(registry, storage):
    assert registry.delete("nothing") is False
    assert storage.save_count == 0


def test_search_matches_any_text_field(registry):
    registry.create(make_plant("Rose", scientific_name="Rosa", habitat="Garden", fact="Symbol of love"))
    registry.create(make_plant("Cactus", scientific_name="Cactaceae", habitat="Desert", fact="Stores water"))
    assert [p.name for p in registry.search("desert")] == ["Cactus"]
    assert [p.name for p in registry.search("LOVE")] == ["Rose"]
    assert len(registry.search("")) == 2


def test_rose_lifecycle(registry):
    rose = Plant(name="Rose", scientific_name="Rosa", habitat="Garden", fact="Symbol of love")
    # back-date so a missing timestamp bump cannot pass
    rose.updated = datetime.now() - timedelta(days=1)
    registry.create(rose)
    listed = registry.list()
    assert [p.name for p in listed] == ["Rose"]
    before = listed[0].updated

    registry.update("Rose", Plant(name="Rose", scientific_name="Rosa", habitat="Wild", fact="Symbol of love"))
    after = registry.get("rose")
    assert after.habitat == "Wild"
    assert after.updated > before

    assert registry.delete("ROSE") is True
    assert registry.list() == []


def test_load_keeps_first_of_case_duplicates(caplog):
    storage = InMemoryStorage([
        make_plant("Fern", habitat="Forest").to_dict(),
        make_plant("FERN", habitat="Swamp").to_dict(),
    ])
    with caplog.at_level("WARNING"):
        registry = PlantRegistryService(storage)
    assert registry.count() == 1
    assert registry.get("fern").habitat == "Forest"
    assert "duplicate" in caplog.text


def test_load_rejects_corrupt_records():
    with pytest.raises(StoreLoadError):
        PlantRegistryService(InMemoryStorage([{"habitat": "nameless"}]))


def test_concurrent_creates_of_one_name_admit_exactly_one():
    # case variants of the same name raced from a threadpool, as fastapi does
    registry = PlantRegistryService(InMemoryStorage())
    variants = ["Tulip", "TULIP", "tulip", "tULIP", "TuLiP", "tUlIp", "TUlip", "tuLIP"] * 4

    def attempt(name):
        try:
            registry.create(make_plant(name))
            return "ok"
        except PlantConflictError:
            return "conflict"

    with ThreadPoolExecutor(max_workers=16) as pool:
        outcomes = list(pool.map(attempt, variants))

    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == len(variants) - 1
    assert registry.count() == 1


class FailingStorage(InMemoryStorage):
    """loads fine, every save fails"""

    def save_all(self, items):
        raise OSError("disk full")


def test_failed_create_leaves_nothing_behind():
    storage = FailingStorage()
    registry = PlantRegistryService(storage)
    with pytest.raises(OSError):
        registry.create(make_plant("Rose"))
    assert registry.get("Rose") is None
    assert storage.items == []


def test_failed_rename_keeps_the_old_record():
    storage = FailingStorage([make_plant("Lily", habitat="Garden").to_dict()])
    registry = PlantRegistryService(storage)
    with pytest.raises(OSError):
        registry.update("Lily", make_plant("Iris", habitat="Wetland"))
    assert registry.get("Iris") is None
    assert registry.get("lily").habitat == "Garden"


def test_failed_delete_keeps_the_record():
    registry = PlantRegistryService(FailingStorage([make_plant("Fern").to_dict()]))
    with pytest.raises(OSError):
        registry.delete("Fern")
    assert registry.get("Fern") is not None
    assert registry.count() == 1
