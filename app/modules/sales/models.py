"""
Modelos SQLAlchemy para ventas

Cada venta guarda una copia (snapshot) de la marca, del producto y del
contrato vigente al momento de registrarse, de modo que cambios
posteriores en la marca no alteren cortes ya calculados.
"""

from app.database.database import Base
from sqlalchemy import Column, String, Date, ForeignKey, Numeric, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from app.common.mixins import TimestampMixin
from app.modules.brands.models import ContractType
import enum


class DiscountType(str, enum.Enum):
    """Tipos de descuento aplicables a una venta"""
    NONE = "none"
    AMOUNT = "amount"
    PERCENTAGE = "percentage"


class Sale(Base, TimestampMixin):
    __tablename__ = "sales"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    sale_number = Column(String(8), nullable=False, unique=True, index=True)  # YYMM + secuencia de 4 dígitos

    # Snapshot de marca y producto
    brand_id = Column(UUID(as_uuid=True), ForeignKey("brands.id"), nullable=True, index=True)
    brand_tag = Column(String(4), nullable=False)
    brand_name = Column(String(100), nullable=False)
    product_key = Column(String(50), nullable=False)
    product_name = Column(String(200), nullable=False)
    product_price = Column(Numeric(15, 2), nullable=False, default=0)

    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)

    # Montos
    amount = Column(Numeric(15, 2), nullable=False)
    original_price = Column(Numeric(15, 2), nullable=True)
    discount_amount = Column(Numeric(15, 2), nullable=False, default=0)
    discount_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    discount_type = Column(Enum(DiscountType), nullable=False, default=DiscountType.NONE)

    # Desglose por método de pago
    amount_cash = Column(Numeric(15, 2), nullable=False, default=0)
    amount_card = Column(Numeric(15, 2), nullable=False, default=0)
    amount_transfer = Column(Numeric(15, 2), nullable=False, default=0)

    # Snapshot del contrato de la marca
    contract_type = Column(Enum(ContractType), nullable=False, default=ContractType.FIXED_SHARE)
    contract_value = Column(Numeric(10, 2), nullable=False, default=0)

    sale_date = Column(Date, nullable=False, index=True)

    brand = relationship("Brand")
