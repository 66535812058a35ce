from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List


def _env(name: str, default: str) -> str:
    return os.environ.get(name) or default


@dataclass
class Settings:
    """runtime settings read from environment variables

    values are read when the instance is created, so build it after any
    test or shell has set the environment.
    """

    db_path: str = field(default_factory=lambda: _env("PLANT_DB_PATH", "data/plants.json"))
    backend: str = field(default_factory=lambda: _env("BACKEND", "json").lower())
    ddb_table: str = field(default_factory=lambda: _env("DDB_TABLE", "plants"))
    aws_region: str = field(default_factory=lambda: _env("AWS_REGION", "eu-west-1"))
    cors_origins_raw: str = field(default_factory=lambda: _env("CORS_ORIGINS", "http://localhost:4200"))
    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))
    host: str = field(default_factory=lambda: _env("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(_env("PORT", "5155")))

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins_raw.split(",") if origin.strip()]
