from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import desc, func
from typing import Dict, Any, Optional
from uuid import UUID
from datetime import date
import logging

from app.modules.cortes.exceptions import PeriodAlreadySettledError
from app.modules.cortes.service import CorteService
from app.modules.outflows.models import Outflow
from app.modules.outflows.schemas import OutflowCreate

logger = logging.getLogger(__name__)


class OutflowService:
    """Servicio para salidas de efectivo"""

    def __init__(self, db: Session):
        self.db = db

    def generate_outflow_number(self) -> str:
        """Siguiente folio de salida: OUT + secuencia de al menos 3 dígitos"""
        last = self.db.query(Outflow.outflow_number).order_by(
            desc(func.length(Outflow.outflow_number)),
            desc(Outflow.outflow_number)
        ).first()

        sequence = 1
        if last:
            try:
                sequence = int(last[0][3:]) + 1
            except ValueError:
                logger.warning(f"Unparseable outflow number {last[0]}, restarting sequence")
        return f"OUT{sequence:03d}"

    def create_outflow(self, outflow_data: OutflowCreate) -> Outflow:
        try:
            CorteService(self.db).ensure_period_open(outflow_data.outflow_date)

            outflow = Outflow(
                outflow_number=self.generate_outflow_number(),
                amount=outflow_data.amount,
                concept=outflow_data.concept,
                payment_label=outflow_data.payment_label,
                outflow_date=outflow_data.outflow_date,
                user_id=outflow_data.user_id
            )
            self.db.add(outflow)
            self.db.commit()
            self.db.refresh(outflow)
            logger.info(f"Outflow {outflow.outflow_number} recorded: {outflow.amount}")
            return outflow

        except PeriodAlreadySettledError as e:
            logger.warning(f"Rejected outflow dated {outflow_data.outflow_date}: {e}")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Folio de salida duplicado. Por favor, intente nuevamente."
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating outflow: {str(e)}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error al registrar la salida: {str(e)}"
            )

    def get_outflows(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Dict[str, Any]:
        query = self.db.query(Outflow)
        if start_date:
            query = query.filter(Outflow.outflow_date >= start_date)
        if end_date:
            query = query.filter(Outflow.outflow_date <= end_date)

        query = query.order_by(desc(Outflow.outflow_date), desc(Outflow.outflow_number))
        total = query.count()
        outflows = query.offset(offset).limit(limit).all()

        return {
            "outflows": outflows,
            "total": total,
            "limit": limit,
            "offset": offset
        }

    def get_outflow(self, outflow_id: UUID) -> Outflow:
        outflow = self.db.query(Outflow).filter(Outflow.id == outflow_id).first()
        if not outflow:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Salida no encontrada"
            )
        return outflow

    def delete_outflow(self, outflow_id: UUID) -> Dict[str, str]:
        try:
            outflow = self.get_outflow(outflow_id)
            CorteService(self.db).ensure_period_open(outflow.outflow_date)

            self.db.delete(outflow)
            self.db.commit()
            return {"message": "Salida eliminada exitosamente"}

        except HTTPException:
            raise
        except PeriodAlreadySettledError as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error al eliminar la salida: {str(e)}"
            )
