"""
Servicio de cortes

Resuelve las ventas y salidas del período, ejecuta el calculador y guarda el
resultado una sola vez por período. La restricción única sobre
cortes.period_id resuelve las solicitudes concurrentes: quien pierde la
carrera recibe un 409 y el corte existente no se modifica.

También expone ensure_period_open, que ventas y salidas usan para rechazar
registros con fecha dentro de un período ya cerrado.
"""

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.exc import IntegrityError
from sqlalchemy import and_, desc
from typing import Dict, Any, List, Optional
from uuid import UUID
from datetime import date
import logging

from app.core.config import settings
from app.modules.cortes.calculator import SettlementCalculator, compute_period_id, validate_period
from app.modules.cortes.exceptions import CorteValidationError, PeriodAlreadySettledError
from app.modules.cortes.models import Corte, CorteBrand, CorteSale, CorteOutflow
from app.modules.cortes.schemas import CorteGenerate, SettlementResult
from app.modules.sales.models import Sale
from app.modules.outflows.models import Outflow

logger = logging.getLogger(__name__)


class CorteService:
    """Servicio para generación y consulta de cortes"""

    def __init__(self, db: Session, calculator: Optional[SettlementCalculator] = None):
        self.db = db
        self.calculator = calculator or SettlementCalculator(settings.CARD_COMMISSION_RATE)

    # ===== CANDADO DE PERÍODO =====

    def find_corte_for_date(self, day: date) -> Optional[Corte]:
        """Corte cuyo rango incluye la fecha, si existe"""
        return self.db.query(Corte).filter(
            Corte.start_date <= day,
            Corte.end_date >= day
        ).first()

    def ensure_period_open(self, day: date) -> None:
        """
        Verificar que la fecha no pertenece a un período ya cerrado

        Raises:
            PeriodAlreadySettledError: Si un corte existente cubre la fecha
        """
        corte = self.find_corte_for_date(day)
        if corte:
            raise PeriodAlreadySettledError(
                corte.period_id,
                f"El período {corte.period_id} ya fue cerrado "
                f"({corte.start_date.isoformat()} a {corte.end_date.isoformat()})"
            )

    def _check_period_available(self, period_id: str, start_date: date, end_date: date) -> None:
        existing = self.db.query(Corte).filter(Corte.period_id == period_id).first()
        if existing:
            raise PeriodAlreadySettledError(period_id, "Ya existe un corte para este período")

        overlapping = self.db.query(Corte).filter(
            Corte.start_date <= end_date,
            Corte.end_date >= start_date
        ).first()
        if overlapping:
            raise PeriodAlreadySettledError(
                overlapping.period_id,
                f"El rango se traslapa con el corte {overlapping.period_id}"
            )

    # ===== CÁLCULO =====

    def _get_sales_in_range(self, start_date: date, end_date: date) -> List[Sale]:
        return self.db.query(Sale).filter(
            and_(Sale.sale_date >= start_date, Sale.sale_date <= end_date)
        ).order_by(Sale.sale_date, Sale.sale_number).all()

    def _get_outflows_in_range(self, start_date: date, end_date: date) -> List[Outflow]:
        return self.db.query(Outflow).filter(
            and_(Outflow.outflow_date >= start_date, Outflow.outflow_date <= end_date)
        ).order_by(Outflow.outflow_date, Outflow.outflow_number).all()

    def preview_corte(self, corte_data: CorteGenerate) -> SettlementResult:
        """Calcular el corte del rango sin guardarlo"""
        try:
            validate_period(corte_data.start_date, corte_data.end_date)
        except CorteValidationError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        sales = self._get_sales_in_range(corte_data.start_date, corte_data.end_date)
        outflows = self._get_outflows_in_range(corte_data.start_date, corte_data.end_date)
        return self.calculator.calculate(
            sales, outflows,
            corte_data.start_date, corte_data.end_date,
            corte_data.generated_by
        )

    def generate_corte(self, corte_data: CorteGenerate) -> Corte:
        """
        Generar y guardar el corte del período

        Args:
            corte_data: Rango de fechas y usuario que genera

        Returns:
            Corte: Corte creado

        Raises:
            HTTPException: 400 si el rango es inválido, 409 si el período ya tiene corte
        """
        try:
            validate_period(corte_data.start_date, corte_data.end_date)
            period_id = compute_period_id(corte_data.start_date)
            self._check_period_available(period_id, corte_data.start_date, corte_data.end_date)

            sales = self._get_sales_in_range(corte_data.start_date, corte_data.end_date)
            outflows = self._get_outflows_in_range(corte_data.start_date, corte_data.end_date)
            logger.debug(f"Found {len(sales)} sales and {len(outflows)} outflows for period {period_id}")

            result = self.calculator.calculate(
                sales, outflows,
                corte_data.start_date, corte_data.end_date,
                corte_data.generated_by
            )

            corte = self._build_corte(result)
            self.db.add(corte)
            self.db.commit()
            self.db.refresh(corte)

            logger.info(
                f"Corte {corte.period_id} generated: {corte.sale_count} sales, "
                f"{corte.outflow_count} outflows, total {corte.total_sales}"
            )
            return corte

        except CorteValidationError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        except PeriodAlreadySettledError as e:
            logger.warning(f"Rejected corte for period {e.period_id}: {e}")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Concurrent corte for period {compute_period_id(corte_data.start_date)} rejected")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Ya existe un corte para este período"
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error generating corte: {str(e)}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error al generar el corte: {str(e)}"
            )

    def _build_corte(self, result: SettlementResult) -> Corte:
        corte = Corte(
            period_id=result.period_id,
            start_date=result.start_date,
            end_date=result.end_date,
            total_sales=result.total_sales,
            total_card_commission=result.total_card_commission,
            total_brand_share=result.total_brand_share,
            total_store_share=result.total_store_share,
            total_outflows=result.total_outflows,
            sale_count=result.sale_count,
            outflow_count=result.outflow_count,
            generated_by=result.generated_by
        )
        corte.brands = [
            CorteBrand(
                position=position,
                brand_id=entry.brand_id,
                brand_name=entry.brand_name,
                contract_type=entry.contract_type,
                contract_value=entry.contract_value,
                brand_total=entry.brand_total,
                sale_count=entry.sale_count
            )
            for position, entry in enumerate(result.brand_breakdown)
        ]
        corte.sales = [
            CorteSale(
                sale_id=line.sale_id,
                card_commission=line.card_commission,
                net_after_commission=line.net_after_commission,
                brand_share=line.brand_share,
                store_share=line.store_share
            )
            for line in result.lines
        ]
        corte.outflows = [CorteOutflow(outflow_id=outflow_id) for outflow_id in result.outflow_ids]
        return corte

    # ===== CONSULTA =====

    def get_cortes(self, limit: int = 100, offset: int = 0) -> Dict[str, Any]:
        query = self.db.query(Corte).options(selectinload(Corte.brands)).order_by(desc(Corte.created_at))
        total = query.count()
        cortes = query.offset(offset).limit(limit).all()

        return {
            "cortes": cortes,
            "total": total,
            "limit": limit,
            "offset": offset
        }

    def get_corte(self, corte_id: UUID) -> Corte:
        corte = self.db.query(Corte).options(
            selectinload(Corte.brands),
            selectinload(Corte.sales).selectinload(CorteSale.sale),
            selectinload(Corte.outflows).selectinload(CorteOutflow.outflow)
        ).filter(Corte.id == corte_id).first()

        if not corte:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Corte no encontrado"
            )
        return corte

    def get_corte_by_period(self, period_id: str) -> Corte:
        corte = self.db.query(Corte).filter(Corte.period_id == period_id).first()
        if not corte:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Corte no encontrado"
            )
        return corte

    def delete_corte(self, corte_id: UUID) -> Dict[str, str]:
        """
        Eliminar un corte (operación administrativa)

        Reabre el período: se pueden volver a registrar ventas en el rango
        y generar un nuevo corte con el mismo period_id.
        """
        try:
            corte = self.get_corte(corte_id)
            period_id = corte.period_id
            self.db.delete(corte)
            self.db.commit()
            logger.warning(f"Corte {period_id} deleted by admin override, period reopened")
            return {"message": "Corte eliminado exitosamente"}

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error eliminando corte: {str(e)}"
            )
