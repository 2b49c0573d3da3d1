from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from typing import List
from uuid import UUID
from datetime import date, datetime


class OutflowCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2, description="Monto de la salida")
    concept: str = Field(..., min_length=1, max_length=255)
    payment_label: str = Field(..., min_length=1, max_length=140, description="Forma de pago")
    outflow_date: date
    user_id: UUID

    @field_validator('concept', 'payment_label')
    @classmethod
    def strip_text(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError('El campo no puede estar vacío')
        return cleaned


class OutflowOut(BaseModel):
    id: UUID
    outflow_number: str
    amount: Decimal
    concept: str
    payment_label: str
    outflow_date: date
    user_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class OutflowList(BaseModel):
    outflows: List[OutflowOut]
    total: int
    limit: int
    offset: int
