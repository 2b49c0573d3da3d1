from fastapi import APIRouter, status, Query
from typing import Optional
from uuid import UUID
from datetime import date

from app.core.config import settings
from app.dependencies.dbDependecies import db_dependency
from app.modules.outflows.service import OutflowService
from app.modules.outflows.schemas import OutflowCreate, OutflowOut, OutflowList

outflows_router = APIRouter(prefix="/outflows", tags=["Outflows"])


@outflows_router.post("/", response_model=OutflowOut, status_code=status.HTTP_201_CREATED)
def create_outflow(outflow_data: OutflowCreate, db: db_dependency):
    service = OutflowService(db)
    return service.create_outflow(outflow_data)


@outflows_router.get("/", response_model=OutflowList)
def list_outflows(
    db: db_dependency,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0)
):
    service = OutflowService(db)
    return service.get_outflows(start_date, end_date, limit, offset)


@outflows_router.delete("/{outflow_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_outflow(outflow_id: UUID, db: db_dependency):
    service = OutflowService(db)
    service.delete_outflow(outflow_id)


@outflows_router.get("/{outflow_id}", response_model=OutflowOut)
def get_outflow(outflow_id: UUID, db: db_dependency):
    service = OutflowService(db)
    return service.get_outflow(outflow_id)
