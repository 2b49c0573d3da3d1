from fastapi import APIRouter, status, Query
from typing import Optional
from uuid import UUID
from datetime import date

from app.core.config import settings
from app.dependencies.dbDependecies import db_dependency
from app.modules.sales.service import SaleService
from app.modules.sales.schemas import SaleCreate, SaleOut, SaleList, SaleNumberOut

sales_router = APIRouter(prefix="/sales", tags=["Sales"])


@sales_router.post("/", response_model=SaleOut, status_code=status.HTTP_201_CREATED)
def create_sale(sale_data: SaleCreate, db: db_dependency):
    """
    Registrar una venta.

    La suma de efectivo, tarjeta y transferencia debe ser igual al monto.
    Responde 409 si la fecha pertenece a un período ya cerrado.
    """
    service = SaleService(db)
    return service.create_sale(sale_data)


@sales_router.get("/", response_model=SaleList)
def list_sales(
    db: db_dependency,
    start_date: Optional[date] = Query(None, description="Fecha inicial (inclusive)"),
    end_date: Optional[date] = Query(None, description="Fecha final (inclusive)"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0)
):
    service = SaleService(db)
    return service.get_sales(start_date, end_date, limit, offset)


@sales_router.get("/next-number", response_model=SaleNumberOut)
def next_sale_number(db: db_dependency, sale_date: date = Query(..., description="Fecha de la venta")):
    service = SaleService(db)
    return {"sale_number": service.generate_sale_number(sale_date)}


@sales_router.get("/{sale_id}", response_model=SaleOut)
def get_sale(sale_id: UUID, db: db_dependency):
    service = SaleService(db)
    return service.get_sale(sale_id)


@sales_router.delete("/{sale_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sale(sale_id: UUID, db: db_dependency):
    service = SaleService(db)
    service.delete_sale(sale_id)
