"""
Servicio de ventas

Registra ventas con copia del contrato de la marca, descuenta existencia del
producto y rechaza ventas con fecha dentro de un período ya cerrado.
"""

from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import desc
from typing import Dict, Any, Optional
from uuid import UUID
from datetime import date
import logging

from app.modules.brands.models import Brand, BrandProduct
from app.modules.brands.service import validate_contract
from app.modules.cortes.exceptions import PeriodAlreadySettledError
from app.modules.cortes.service import CorteService
from app.modules.sales.models import Sale
from app.modules.sales.schemas import SaleCreate

logger = logging.getLogger(__name__)


class SaleService:
    """Servicio para registro y consulta de ventas"""

    def __init__(self, db: Session):
        self.db = db

    def generate_sale_number(self, sale_date: date) -> str:
        """
        Siguiente número de venta del mes: YYMM + secuencia de 4 dígitos

        El prefijo sale de la fecha de la venta, no de la fecha actual.
        """
        prefix = f"{sale_date.year % 100:02d}{sale_date.month:02d}"
        last_sale = self.db.query(Sale).filter(
            Sale.sale_number.like(f"{prefix}%")
        ).order_by(desc(Sale.sale_number)).first()

        sequence = 1
        if last_sale:
            try:
                sequence = int(last_sale.sale_number[-4:]) + 1
            except ValueError:
                logger.warning(f"Unparseable sale number {last_sale.sale_number}, restarting sequence")

        return f"{prefix}{sequence:04d}"

    def create_sale(self, sale_data: SaleCreate) -> Sale:
        """
        Registrar una venta

        Raises:
            HTTPException: 404 si la marca o el producto no existen, 400 sin
                existencia, 409 si el período de la fecha ya fue cerrado
        """
        try:
            CorteService(self.db).ensure_period_open(sale_data.sale_date)

            brand = self.db.query(Brand).filter(Brand.tag == sale_data.brand_tag).first()
            if not brand:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Marca no encontrada"
                )
            if not brand.is_active:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"La marca {brand.tag} está inactiva y no puede registrar ventas"
                )

            product = self.db.query(BrandProduct).filter(
                BrandProduct.brand_id == brand.id,
                BrandProduct.key == sale_data.product_key
            ).with_for_update().first()
            if not product:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Producto no encontrado"
                )

            if product.quantity <= 0:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="No hay suficiente stock para este producto"
                )

            contract_type = sale_data.contract_type or brand.contract_type
            contract_value = sale_data.contract_value
            if contract_value is None:
                contract_value = brand.contract_value or 0
            validate_contract(contract_type, contract_value)

            sale = Sale(
                sale_number=self.generate_sale_number(sale_data.sale_date),
                brand_id=brand.id,
                brand_tag=brand.tag,
                brand_name=brand.name,
                product_key=product.key,
                product_name=product.name,
                product_price=product.price,
                user_id=sale_data.user_id,
                amount=sale_data.amount,
                original_price=sale_data.original_price if sale_data.original_price is not None else sale_data.amount,
                discount_amount=sale_data.discount_amount,
                discount_percentage=sale_data.discount_percentage,
                discount_type=sale_data.discount_type,
                amount_cash=sale_data.amount_cash,
                amount_card=sale_data.amount_card,
                amount_transfer=sale_data.amount_transfer,
                contract_type=contract_type,
                contract_value=contract_value,
                sale_date=sale_data.sale_date
            )
            self.db.add(sale)
            product.quantity -= 1

            self.db.commit()
            self.db.refresh(sale)
            logger.info(f"Sale {sale.sale_number} recorded for brand {brand.tag}: {sale.amount}")
            return sale

        except HTTPException:
            self.db.rollback()
            raise
        except PeriodAlreadySettledError as e:
            logger.warning(f"Rejected sale dated {sale_data.sale_date}: {e}")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Número de venta duplicado. Por favor, intente nuevamente."
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating sale: {str(e)}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error interno del servidor: {str(e)}"
            )

    def get_sales(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Dict[str, Any]:
        query = self.db.query(Sale)
        if start_date:
            query = query.filter(Sale.sale_date >= start_date)
        if end_date:
            query = query.filter(Sale.sale_date <= end_date)
        if start_date and end_date and end_date < start_date:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La fecha final no puede ser anterior a la fecha inicial"
            )

        query = query.order_by(desc(Sale.sale_date), desc(Sale.sale_number))
        total = query.count()
        sales = query.offset(offset).limit(limit).all()

        return {
            "sales": sales,
            "total": total,
            "limit": limit,
            "offset": offset
        }

    def get_sale(self, sale_id: UUID) -> Sale:
        sale = self.db.query(Sale).filter(Sale.id == sale_id).first()
        if not sale:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Venta no encontrada"
            )
        return sale

    def delete_sale(self, sale_id: UUID) -> Dict[str, str]:
        """Eliminar una venta; no se permite si su período ya fue cerrado"""
        try:
            sale = self.get_sale(sale_id)
            CorteService(self.db).ensure_period_open(sale.sale_date)

            self.db.delete(sale)
            self.db.commit()
            return {"message": "Venta eliminada exitosamente"}

        except HTTPException:
            raise
        except PeriodAlreadySettledError as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error al eliminar la venta: {str(e)}"
            )
