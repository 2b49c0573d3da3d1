"""
Endpoints REST de cortes

- POST /cortes/preview: calcula el corte sin guardarlo
- POST /cortes/generate: genera el corte del período (una sola vez por period_id)
- GET /cortes/: historial de cortes
- GET /cortes/period/{period_id}: corte por identificador de período
- GET /cortes/{corte_id}: detalle con ventas y salidas incluidas
- DELETE /cortes/{corte_id}: eliminación administrativa, reabre el período
"""

from fastapi import APIRouter, status, Query
from uuid import UUID

from app.core.config import settings
from app.dependencies.dbDependecies import db_dependency
from app.modules.cortes.service import CorteService
from app.modules.cortes.schemas import (
    CorteGenerate, CorteOut, CorteDetail, CorteList, SettlementResult
)

cortes_router = APIRouter(prefix="/cortes", tags=["Cortes"])


@cortes_router.post("/preview", response_model=SettlementResult)
def preview_corte(corte_data: CorteGenerate, db: db_dependency):
    service = CorteService(db)
    return service.preview_corte(corte_data)


@cortes_router.post("/generate", response_model=CorteOut, status_code=status.HTTP_201_CREATED)
def generate_corte(corte_data: CorteGenerate, db: db_dependency):
    """
    Generar el corte del período.

    - **start_date** / **end_date**: rango inclusive
    - **generated_by**: usuario que genera el corte

    Responde 409 si ya existe un corte con el mismo period_id (MMYY de start_date)
    o si el rango se traslapa con otro corte.
    """
    service = CorteService(db)
    return service.generate_corte(corte_data)


@cortes_router.get("/", response_model=CorteList)
def list_cortes(
    db: db_dependency,
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0)
):
    service = CorteService(db)
    return service.get_cortes(limit, offset)


@cortes_router.get("/period/{period_id}", response_model=CorteOut)
def get_corte_by_period(period_id: str, db: db_dependency):
    service = CorteService(db)
    return service.get_corte_by_period(period_id)


@cortes_router.get("/{corte_id}", response_model=CorteDetail)
def get_corte(corte_id: UUID, db: db_dependency):
    service = CorteService(db)
    return service.get_corte(corte_id)


@cortes_router.delete("/{corte_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_corte(corte_id: UUID, db: db_dependency):
    service = CorteService(db)
    service.delete_corte(corte_id)
