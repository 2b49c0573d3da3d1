"""
Modelos SQLAlchemy para cortes

- Corte: resumen inmutable de un período; period_id es único
- CorteBrand: desglose por marca
- CorteSale: ventas incluidas con sus campos calculados
- CorteOutflow: salidas incluidas

Una venta o salida pertenece como máximo a un corte.
"""

from app.database.database import Base
from sqlalchemy import Column, String, Integer, Date, ForeignKey, Numeric, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from app.common.mixins import TimestampMixin
from app.modules.brands.models import ContractType


class Corte(Base, TimestampMixin):
    __tablename__ = "cortes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    period_id = Column(String(4), nullable=False, unique=True, index=True)  # MMYY de la fecha inicial
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    # Totales
    total_sales = Column(Numeric(15, 2), nullable=False, default=0)
    total_card_commission = Column(Numeric(15, 2), nullable=False, default=0)
    total_brand_share = Column(Numeric(15, 2), nullable=False, default=0)
    total_store_share = Column(Numeric(15, 2), nullable=False, default=0)
    total_outflows = Column(Numeric(15, 2), nullable=False, default=0)
    sale_count = Column(Integer, nullable=False, default=0)
    outflow_count = Column(Integer, nullable=False, default=0)

    generated_by = Column(UUID(as_uuid=True), nullable=False)

    # Relationships
    brands = relationship(
        "CorteBrand", back_populates="corte",
        cascade="all, delete-orphan", order_by="CorteBrand.position"
    )
    sales = relationship("CorteSale", back_populates="corte", cascade="all, delete-orphan")
    outflows = relationship("CorteOutflow", back_populates="corte", cascade="all, delete-orphan")


class CorteBrand(Base):
    __tablename__ = "corte_brands"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    corte_id = Column(UUID(as_uuid=True), ForeignKey("cortes.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)  # Orden de aparición en el período
    brand_id = Column(UUID(as_uuid=True), nullable=True)
    brand_name = Column(String(100), nullable=False)
    contract_type = Column(Enum(ContractType), nullable=False)
    contract_value = Column(Numeric(10, 2), nullable=False, default=0)
    brand_total = Column(Numeric(15, 2), nullable=False)
    sale_count = Column(Integer, nullable=False)

    corte = relationship("Corte", back_populates="brands")


class CorteSale(Base):
    __tablename__ = "corte_sales"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    corte_id = Column(UUID(as_uuid=True), ForeignKey("cortes.id"), nullable=False, index=True)
    sale_id = Column(UUID(as_uuid=True), ForeignKey("sales.id"), nullable=False)
    card_commission = Column(Numeric(15, 2), nullable=False)
    net_after_commission = Column(Numeric(15, 2), nullable=False)
    brand_share = Column(Numeric(15, 2), nullable=False)
    store_share = Column(Numeric(15, 2), nullable=False)

    corte = relationship("Corte", back_populates="sales")
    sale = relationship("Sale")

    __table_args__ = (
        UniqueConstraint("sale_id", name="uq_corte_sale"),
    )

    @property
    def sale_number(self):
        return self.sale.sale_number if self.sale else None

    @property
    def brand_name(self):
        return self.sale.brand_name if self.sale else None

    @property
    def sale_date(self):
        return self.sale.sale_date if self.sale else None

    @property
    def amount(self):
        return self.sale.amount if self.sale else None


class CorteOutflow(Base):
    __tablename__ = "corte_outflows"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    corte_id = Column(UUID(as_uuid=True), ForeignKey("cortes.id"), nullable=False, index=True)
    outflow_id = Column(UUID(as_uuid=True), ForeignKey("outflows.id"), nullable=False)

    corte = relationship("Corte", back_populates="outflows")
    outflow = relationship("Outflow")

    __table_args__ = (
        UniqueConstraint("outflow_id", name="uq_corte_outflow"),
    )

    @property
    def outflow_number(self):
        return self.outflow.outflow_number if self.outflow else None

    @property
    def concept(self):
        return self.outflow.concept if self.outflow else None

    @property
    def outflow_date(self):
        return self.outflow.outflow_date if self.outflow else None

    @property
    def amount(self):
        return self.outflow.amount if self.outflow else None
