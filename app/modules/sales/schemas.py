"""
Esquemas Pydantic para ventas
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import date, datetime

from app.modules.brands.models import ContractType
from app.modules.sales.models import DiscountType


class SaleCreate(BaseModel):
    """Esquema para registrar una venta"""
    brand_tag: str = Field(..., description="Clave de la marca")
    product_key: str = Field(..., description="Clave del producto (con prefijo de la marca)")
    user_id: UUID = Field(..., description="Usuario que registra la venta")
    sale_date: date = Field(..., description="Fecha de la venta")

    amount: Decimal = Field(..., ge=0, decimal_places=2, description="Monto final cobrado")
    original_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2, description="Precio antes de descuento")
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    discount_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    discount_type: DiscountType = DiscountType.NONE

    amount_cash: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2, description="Pagado en efectivo")
    amount_card: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2, description="Pagado con tarjeta")
    amount_transfer: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2, description="Pagado por transferencia")

    # Si no se envían se toma el contrato vigente de la marca
    contract_type: Optional[ContractType] = None
    contract_value: Optional[Decimal] = Field(None, ge=0, le=100)

    @field_validator('brand_tag')
    @classmethod
    def normalize_tag(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode='after')
    def validate_payment_split(self):
        paid = self.amount_cash + self.amount_card + self.amount_transfer
        if paid != self.amount:
            raise ValueError(
                f'La suma de efectivo, tarjeta y transferencia ({paid}) '
                f'debe ser igual al monto de la venta ({self.amount})'
            )
        return self


class SaleOut(BaseModel):
    id: UUID
    sale_number: str
    brand_id: Optional[UUID] = None
    brand_tag: str
    brand_name: str
    product_key: str
    product_name: str
    product_price: Decimal
    user_id: UUID
    amount: Decimal
    original_price: Optional[Decimal] = None
    discount_amount: Decimal
    discount_percentage: Decimal
    discount_type: DiscountType
    amount_cash: Decimal
    amount_card: Decimal
    amount_transfer: Decimal
    contract_type: ContractType
    contract_value: Decimal
    sale_date: date
    created_at: datetime

    model_config = {"from_attributes": True}


class SaleList(BaseModel):
    sales: List[SaleOut]
    total: int
    limit: int
    offset: int


class SaleNumberOut(BaseModel):
    sale_number: str
