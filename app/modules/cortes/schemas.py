"""
Esquemas Pydantic para el módulo de cortes

- Registros de entrada del calculador (SaleRecord, OutflowRecord)
- Resultado del calculador (SaleLine, BrandBreakdown, SettlementResult)
- Entrada/salida de la API (CorteGenerate, CorteOut, CorteDetail, CorteList)
"""

from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import date, datetime

from app.modules.brands.models import ContractType


# ===== REGISTROS DE ENTRADA =====

class SaleRecord(BaseModel):
    """Venta tal como la consume el calculador"""
    id: Optional[UUID] = None
    brand_id: Optional[UUID] = None
    brand_name: Optional[str] = None
    amount: Optional[Decimal] = None
    amount_cash: Optional[Decimal] = None
    amount_card: Optional[Decimal] = None
    amount_transfer: Optional[Decimal] = None
    contract_type: Optional[str] = None
    contract_value: Optional[Decimal] = None
    sale_date: Optional[date] = None


class OutflowRecord(BaseModel):
    """Salida de efectivo tal como la consume el calculador"""
    id: Optional[UUID] = None
    amount: Optional[Decimal] = None
    concept: Optional[str] = None
    payment_label: Optional[str] = None
    outflow_date: Optional[date] = None


# ===== RESULTADO DEL CALCULADOR =====

class SaleLine(BaseModel):
    """Campos calculados de una venta dentro del corte"""
    sale_id: Optional[UUID] = None
    brand_id: Optional[UUID] = None
    brand_name: str
    contract_type: ContractType
    contract_value: Decimal
    amount: Decimal
    card_commission: Decimal
    net_after_commission: Decimal
    brand_share: Decimal
    store_share: Decimal


class BrandBreakdown(BaseModel):
    brand_id: Optional[UUID] = None
    brand_name: str
    contract_type: ContractType
    contract_value: Decimal
    brand_total: Decimal
    sale_count: int


class SettlementResult(BaseModel):
    period_id: str
    start_date: date
    end_date: date
    total_sales: Decimal
    total_card_commission: Decimal
    total_brand_share: Decimal
    total_store_share: Decimal
    total_outflows: Decimal
    sale_count: int
    outflow_count: int
    brand_breakdown: List[BrandBreakdown] = []
    lines: List[SaleLine] = []
    outflow_ids: List[UUID] = []
    generated_by: Optional[UUID] = None


# ===== API =====

class CorteGenerate(BaseModel):
    """Esquema para generar un corte"""
    start_date: date = Field(..., description="Fecha inicial del período (inclusive)")
    end_date: date = Field(..., description="Fecha final del período (inclusive)")
    generated_by: UUID = Field(..., description="Usuario que genera el corte")


class CorteBrandOut(BaseModel):
    brand_id: Optional[UUID] = None
    brand_name: str
    contract_type: ContractType
    contract_value: Decimal
    brand_total: Decimal
    sale_count: int

    model_config = {"from_attributes": True}


class CorteSaleOut(BaseModel):
    sale_id: UUID
    sale_number: Optional[str] = None
    brand_name: Optional[str] = None
    sale_date: Optional[date] = None
    amount: Optional[Decimal] = None
    card_commission: Decimal
    net_after_commission: Decimal
    brand_share: Decimal
    store_share: Decimal

    model_config = {"from_attributes": True}


class CorteOutflowOut(BaseModel):
    outflow_id: UUID
    outflow_number: Optional[str] = None
    concept: Optional[str] = None
    outflow_date: Optional[date] = None
    amount: Optional[Decimal] = None

    model_config = {"from_attributes": True}


class CorteOut(BaseModel):
    id: UUID
    period_id: str
    start_date: date
    end_date: date
    total_sales: Decimal
    total_card_commission: Decimal
    total_brand_share: Decimal
    total_store_share: Decimal
    total_outflows: Decimal
    sale_count: int
    outflow_count: int
    generated_by: UUID
    brands: List[CorteBrandOut] = []
    created_at: datetime

    model_config = {"from_attributes": True}


class CorteDetail(CorteOut):
    """Corte con las ventas y salidas incluidas"""
    sales: List[CorteSaleOut] = []
    outflows: List[CorteOutflowOut] = []


class CorteList(BaseModel):
    cortes: List[CorteOut]
    total: int
    limit: int
    offset: int
