from app.database.database import Base
from sqlalchemy import Column, Integer, String, Boolean, Date, ForeignKey, Numeric, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID

from uuid import uuid4
from app.common.mixins import TimestampMixin
import enum


class ContractType(str, enum.Enum):
    """Tipos de contrato entre la marca y la tienda"""
    FIXED_SHARE = "DCE"                  # Todo el neto es de la marca
    FLOOR = "Piso"                       # Renta de piso, todo el neto es de la marca
    PERCENTAGE = "Porcentaje"            # La tienda retiene contract_value % del neto
    HOUSE_BRAND = "Estetica Unisex"      # Marca de la casa, ambos lados reciben el neto


class Brand(Base, TimestampMixin):
    __tablename__ = "brands"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    tag = Column(String(4), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(String(500), nullable=True)
    location = Column(String(255), nullable=True)

    # Contrato con la tienda
    contract_type = Column(Enum(ContractType), nullable=False, default=ContractType.FIXED_SHARE)
    contract_value = Column(Numeric(10, 2), nullable=False, default=0)

    # Información bancaria y de contacto
    contact = Column(String(255), nullable=True)
    bank = Column(String(100), nullable=True)
    account_number = Column(String(50), nullable=True)
    clabe = Column(String(18), nullable=True)
    card = Column(String(19), nullable=True)

    is_active = Column(Boolean, default=True)
    created_by = Column(UUID(as_uuid=True), nullable=True)

    # Relationships
    products = relationship(
        "BrandProduct",
        back_populates="brand",
        cascade="all, delete-orphan",
        order_by="BrandProduct.key"
    )


class BrandProduct(Base, TimestampMixin):
    """Producto consignado por una marca en la tienda"""
    __tablename__ = "brand_products"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    brand_id = Column(UUID(as_uuid=True), ForeignKey("brands.id"), nullable=False, index=True)
    key = Column(String(50), nullable=False, index=True)  # Clave con prefijo del tag de la marca
    name = Column(String(200), nullable=False)
    description = Column(String(500), nullable=True)
    price = Column(Numeric(15, 2), nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=0)
    received_at = Column(Date, nullable=True)

    brand = relationship("Brand", back_populates="products")

    __table_args__ = (
        UniqueConstraint("brand_id", "key", name="uq_brand_product_key"),
    )
