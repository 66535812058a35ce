from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from .bootstrap import get_registry
from .config import Settings
from .errors import PlantConflictError, PlantNotFoundError, StoreLoadError
from .logging_config import setup_logging
from .models import Plant
from .services.registry import PlantRegistryService

logger = logging.getLogger(__name__)


class PlantIn(BaseModel):
    """request body for create and update; every text field is required"""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    scientific_name: str = Field(..., min_length=1, alias="scientificName")
    habitat: str = Field(..., min_length=1)
    fact: str = Field(..., min_length=1, alias="somethingInteresting")

    def to_plant(self) -> Plant:
        return Plant(
            name=self.name,
            scientific_name=self.scientific_name,
            habitat=self.habitat,
            fact=self.fact,
        )


class PlantOut(BaseModel):
    """plant as returned to clients (camelcase keys, as stored on disk)"""

    name: str
    scientificName: str
    habitat: str
    somethingInteresting: str
    updated: datetime

    @classmethod
    def from_plant(cls, plant: Plant) -> "PlantOut":
        return cls(**plant.to_dict())


router = APIRouter()


def get_service(request: Request) -> PlantRegistryService:
    return request.app.state.registry


@router.get("", response_model=List[PlantOut])
def list_plants(q: Optional[str] = None, service: PlantRegistryService = Depends(get_service)) -> List[PlantOut]:
    # not logged: the client polls this endpoint
    plants = service.search(q) if q else service.list()
    return [PlantOut.from_plant(p) for p in plants]


@router.get("/{name}", response_model=PlantOut)
def get_plant(name: str, service: PlantRegistryService = Depends(get_service)) -> PlantOut:
    plant = service.get(name)
    if plant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Plant '{name}' not found.")
    return PlantOut.from_plant(plant)


@router.post("", response_model=PlantOut, status_code=status.HTTP_201_CREATED)
def create_plant(payload: PlantIn, response: Response, service: PlantRegistryService = Depends(get_service)) -> PlantOut:
    try:
        created = service.create(payload.to_plant())
    except PlantConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    logger.info("Plant '%s' created", created.name)
    response.headers["Location"] = f"/plants/{quote(created.name, safe='')}"
    return PlantOut.from_plant(created)


@router.put("/{name}", response_model=PlantOut)
def update_plant(name: str, payload: PlantIn, service: PlantRegistryService = Depends(get_service)) -> PlantOut:
    """update a plant; a different name in the body renames it"""
    try:
        updated = service.update(name, payload.to_plant())
    except PlantNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except PlantConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    logger.info("Plant '%s' updated", name)
    return PlantOut.from_plant(updated)


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
def delete_plant(name: str, service: PlantRegistryService = Depends(get_service)) -> Response:
    if not service.delete(name):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Plant '{name}' not found.")
    logger.info("Plant '%s' deleted", name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def create_app(registry: Optional[PlantRegistryService] = None, settings: Optional[Settings] = None) -> FastAPI:
    """build the app around one registry; a bad store raises StoreLoadError before serving"""
    settings = settings or Settings()
    setup_logging(settings.log_level)

    app = FastAPI(title="Plant Registry API", version="0.1.0")
    if registry is None:
        try:
            registry = get_registry(settings)
        except StoreLoadError as e:
            logger.error("cannot start: %s", e)
            raise
    app.state.registry = registry

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router, prefix="/plants", tags=["plants"])

    @app.get("/health", tags=["system"])
    def healthcheck() -> dict:
        """readiness check with the number of loaded plants"""
        return {"status": "ok", "plants": app.state.registry.count()}

    return app
