# salonbook/api/routes/services.py
from typing import List

from fastapi import APIRouter, Depends, Query

from salonbook.api.auth import require_api_key
from salonbook.api.deps import get_catalog_service
from salonbook.schemas.service import ServiceActive, ServiceCreate, ServiceOut, ServiceUpdate
from salonbook.services.catalog import CatalogService

router = APIRouter(prefix="/services", tags=["services"], dependencies=[Depends(require_api_key)])


@router.get("", response_model=List[ServiceOut])
async def list_services(
    active_only: bool = Query(False),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return await catalog.list_services(active_only=active_only)


@router.post("", response_model=ServiceOut, status_code=201)
async def create_service(payload: ServiceCreate, catalog: CatalogService = Depends(get_catalog_service)):
    return await catalog.create_service(payload)


@router.get("/{service_id}", response_model=ServiceOut)
async def get_service(service_id: int, catalog: CatalogService = Depends(get_catalog_service)):
    return await catalog.get_service(service_id)


@router.patch("/{service_id}", response_model=ServiceOut)
async def update_service(
    service_id: int,
    payload: ServiceUpdate,
    catalog: CatalogService = Depends(get_catalog_service),
):
    return await catalog.update_service(service_id, payload)


@router.post("/{service_id}/active", response_model=ServiceOut)
async def set_active(
    service_id: int,
    payload: ServiceActive,
    catalog: CatalogService = Depends(get_catalog_service),
):
    return await catalog.set_service_active(service_id, payload.active)
