from pydantic import BaseModel, Field, field_validator, model_validator
from decimal import Decimal
from uuid import UUID
from typing import Optional, List
from datetime import date, datetime

from app.modules.brands.models import ContractType


class BrandProductCreate(BaseModel):
    key: Optional[str] = Field(None, max_length=40, description="Clave del producto (sin el tag)")
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    price: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    quantity: int = Field(default=0, ge=0)
    received_at: Optional[date] = None


class BrandProductUpdate(BaseModel):
    key: Optional[str] = Field(None, min_length=1, max_length=40)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    quantity: Optional[int] = Field(None, ge=0)
    received_at: Optional[date] = None

    @field_validator('key', 'name', 'price', 'quantity')
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError('El campo no puede ser nulo')
        return v


class BrandProductOut(BaseModel):
    id: UUID
    key: str
    name: str
    description: Optional[str] = None
    price: Decimal
    quantity: int
    received_at: Optional[date] = None

    model_config = {"from_attributes": True}


class BrandCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    tag: str = Field(..., description="Clave de la marca, exactamente 4 caracteres")
    description: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=255)
    contract_type: ContractType = ContractType.FIXED_SHARE
    contract_value: Decimal = Field(default=Decimal("0"), ge=0)
    contact: Optional[str] = None
    bank: Optional[str] = None
    account_number: Optional[str] = None
    clabe: Optional[str] = None
    card: Optional[str] = None
    products: List[BrandProductCreate] = []
    created_by: Optional[UUID] = None

    @field_validator('tag')
    @classmethod
    def validate_tag(cls, v: str) -> str:
        cleaned = v.strip().upper()
        if len(cleaned) != 4:
            raise ValueError('La clave de marca debe tener exactamente 4 caracteres')
        return cleaned

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError('El nombre no puede estar vacío')
        return cleaned

    @model_validator(mode='after')
    def validate_contract(self):
        if self.contract_type == ContractType.PERCENTAGE and self.contract_value > 100:
            raise ValueError('El porcentaje del contrato debe estar entre 0 y 100')
        return self


class BrandUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    tag: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    contract_type: Optional[ContractType] = None
    contract_value: Optional[Decimal] = Field(None, ge=0)
    contact: Optional[str] = None
    bank: Optional[str] = None
    account_number: Optional[str] = None
    clabe: Optional[str] = None
    card: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator('name', 'tag', 'contract_type', 'contract_value', 'is_active')
    @classmethod
    def reject_null(cls, v):
        # Campos obligatorios en la marca: se pueden omitir, no enviar como null
        if v is None:
            raise ValueError('El campo no puede ser nulo')
        return v

    @field_validator('tag')
    @classmethod
    def validate_tag(cls, v: str) -> str:
        cleaned = v.strip().upper()
        if len(cleaned) != 4:
            raise ValueError('La clave de marca debe tener exactamente 4 caracteres')
        return cleaned

    @model_validator(mode='after')
    def validate_contract(self):
        if (self.contract_type == ContractType.PERCENTAGE
                and self.contract_value is not None and self.contract_value > 100):
            raise ValueError('El porcentaje del contrato debe estar entre 0 y 100')
        return self


class StockUpdate(BaseModel):
    product_key: str
    quantity: int = Field(..., ge=0)


class BrandOut(BaseModel):
    id: UUID
    tag: str
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    contract_type: ContractType
    contract_value: Decimal
    contact: Optional[str] = None
    bank: Optional[str] = None
    account_number: Optional[str] = None
    clabe: Optional[str] = None
    card: Optional[str] = None
    is_active: bool
    products: List[BrandProductOut] = []
    created_at: datetime

    model_config = {"from_attributes": True}


class ProductSearchResult(BrandProductOut):
    """Producto encontrado en la búsqueda, con la marca a la que pertenece"""
    brand_id: UUID
    brand_name: str
    brand_tag: str


class ProductSearchList(BaseModel):
    results: List[ProductSearchResult]
    count: int


class BrandList(BaseModel):
    brands: List[BrandOut]
    total: int
    limit: int
    offset: int
