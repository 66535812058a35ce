from __future__ import annotations


class PlantConflictError(ValueError):
    """raised when a create or rename would reuse a taken name"""


class PlantNotFoundError(LookupError):
    """raised when an update targets a name with no record"""


class StoreLoadError(RuntimeError):
    """the persisted store is missing or unreadable; fatal at startup"""
