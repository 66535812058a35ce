from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Optional


# helpers ---------------------------------------------------------------

def _now() -> datetime:
    return datetime.now()


def normalize_name(name: str) -> str:
    """the one key function used for every lookup and write in the store"""
    return (name or "").strip().lower()


def _pick(data: Dict[str, Any], *keys: str) -> Optional[Any]:
    # first key present wins; accepts camelCase, alias and PascalCase spellings
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not value:
        return _now()
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as e:
        raise ValueError(f"updated must be iso8601, got {value!r}") from e


# validation ------------------------------------------------------------

REQUIRED_FIELDS = {
    "name": "name",
    "scientific_name": "scientificName",
    "habitat": "habitat",
    "fact": "somethingInteresting",
}


def validate_required(label: str, value: Optional[str]) -> None:
    # required text fields must be non-empty once trimmed
    if value is None or not str(value).strip():
        raise ValueError(f"{label} is required")


def validate_plant(plant: "Plant") -> None:
    """boundary check used by the cli and mirrored by the api schema"""
    for attr, label in REQUIRED_FIELDS.items():
        validate_required(label, getattr(plant, attr))


@dataclass
class Plant:
    """plant record; the store keys it by normalized name"""

    name: str
    scientific_name: str
    habitat: str
    fact: str
    updated: datetime = field(default_factory=_now)

    @property
    def key(self) -> str:
        return normalize_name(self.name)

    def touch(self) -> None:
        self.updated = _now()

    def copy(self) -> "Plant":
        return replace(self)

    # serialization helpers -------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "scientificName": self.scientific_name,
            "habitat": self.habitat,
            "somethingInteresting": self.fact,
            "updated": self.updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Plant":
        # construct from a persisted or posted dict
        name = _pick(data, "name", "Name")
        if name is None:
            raise ValueError("name is required")
        return cls(
            name=str(name),
            scientific_name=str(_pick(data, "scientificName", "scientific_name", "ScientificName") or ""),
            habitat=str(_pick(data, "habitat", "Habitat") or ""),
            fact=str(_pick(data, "somethingInteresting", "fact", "SomethingInteresting") or ""),
            updated=_parse_timestamp(_pick(data, "updated", "Updated")),
        )
