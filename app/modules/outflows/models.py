from app.database.database import Base
from sqlalchemy import Column, String, Date, Numeric
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from app.common.mixins import TimestampMixin


class Outflow(Base, TimestampMixin):
    """Salida de efectivo de la tienda (gastos, pagos, retiros)"""
    __tablename__ = "outflows"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    outflow_number = Column(String(10), nullable=False, unique=True, index=True)  # OUT + secuencia
    amount = Column(Numeric(15, 2), nullable=False)
    concept = Column(String(255), nullable=False)
    payment_label = Column(String(140), nullable=False)  # Cómo se pagó la salida
    outflow_date = Column(Date, nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
