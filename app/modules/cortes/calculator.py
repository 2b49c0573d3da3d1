"""
Calculador de cortes (liquidación de período)

Transforma las ventas y salidas de un período en el resumen del corte:
comisión de tarjeta, reparto del neto entre marca y tienda según el
contrato de cada venta, totales por marca y totales del período.

Es una función pura: no consulta la base de datos ni la hora actual y no
modifica sus entradas. Las ventas y salidas deben llegar ya filtradas al
rango [start_date, end_date]; el calculador no vuelve a validar fechas de
cada registro. Evitar dos cortes persistidos para el mismo período es
responsabilidad de quien guarda el resultado (ver CorteService).
"""

from decimal import Decimal, ROUND_HALF_UP
from datetime import date
from typing import Any, Dict, Iterable, Optional, Tuple
from uuid import UUID
import logging

from app.modules.brands.models import ContractType
from app.modules.cortes.exceptions import CorteValidationError
from app.modules.cortes.schemas import SaleLine, BrandBreakdown, SettlementResult

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
ZERO = Decimal('0.00')
HUNDRED = Decimal('100')
DEFAULT_CARD_COMMISSION_RATE = Decimal('0.046')
UNBRANDED_NAME = "Sin Marca"


def to_decimal(value: Any) -> Decimal:
    """Convierte un monto a Decimal; None o vacío cuentan como cero"""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value: Decimal) -> Decimal:
    """Redondeo comercial a centavos"""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_period_id(start_date: date) -> str:
    """Identificador del período: MM + últimos dos dígitos del año (ej. '0125')"""
    return f"{start_date.month:02d}{start_date.year % 100:02d}"


def validate_period(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date is None or end_date is None:
        raise CorteValidationError("Las fechas de inicio y fin son requeridas")
    if end_date < start_date:
        raise CorteValidationError("La fecha final no puede ser anterior a la fecha inicial")


def resolve_contract_type(raw: Any) -> ContractType:
    """
    Resolver el tipo de contrato de una venta.

    Sin contrato se asume DCE. Un valor desconocido también se liquida
    como DCE, pero queda registrado en el log.
    """
    if raw is None or raw == "":
        return ContractType.FIXED_SHARE
    if isinstance(raw, ContractType):
        return raw
    try:
        return ContractType(raw)
    except ValueError:
        pass
    try:
        return ContractType[str(raw)]
    except KeyError:
        logger.warning(f"Unknown contract type '{raw}', settling as {ContractType.FIXED_SHARE.value}")
        return ContractType.FIXED_SHARE


def split_net(net: Decimal, contract_type: ContractType, contract_value: Decimal) -> Tuple[Decimal, Decimal]:
    """
    Repartir el neto después de comisión entre marca y tienda.

    Returns:
        (parte de la marca, parte de la tienda)
    """
    if contract_type == ContractType.PERCENTAGE:
        store_share = quantize_money(net * contract_value / HUNDRED)
        return net - store_share, store_share
    if contract_type == ContractType.HOUSE_BRAND:
        # Marca de la casa: ambos lados reportan el neto completo
        return net, net
    # DCE y Piso
    return net, ZERO


class SettlementCalculator:
    """Calcula el resumen de un corte a partir de ventas y salidas"""

    def __init__(self, card_commission_rate: Decimal = DEFAULT_CARD_COMMISSION_RATE):
        self.card_commission_rate = to_decimal(card_commission_rate)

    def calculate_card_commission(self, amount_card: Any) -> Decimal:
        """Comisión sobre la parte pagada con tarjeta; efectivo y transferencia no pagan comisión"""
        return quantize_money(to_decimal(amount_card) * self.card_commission_rate)

    def calculate_sale_line(self, sale: Any) -> SaleLine:
        amount = quantize_money(to_decimal(getattr(sale, "amount", None)))
        card_commission = self.calculate_card_commission(getattr(sale, "amount_card", None))
        net = amount - card_commission

        contract_type = resolve_contract_type(getattr(sale, "contract_type", None))
        contract_value = to_decimal(getattr(sale, "contract_value", None))
        brand_share, store_share = split_net(net, contract_type, contract_value)

        return SaleLine(
            sale_id=getattr(sale, "id", None),
            brand_id=getattr(sale, "brand_id", None),
            brand_name=getattr(sale, "brand_name", None) or UNBRANDED_NAME,
            contract_type=contract_type,
            contract_value=contract_value,
            amount=amount,
            card_commission=card_commission,
            net_after_commission=net,
            brand_share=brand_share,
            store_share=store_share
        )

    def calculate(
        self,
        sales: Iterable[Any],
        outflows: Iterable[Any],
        start_date: date,
        end_date: date,
        generated_by: Optional[UUID] = None
    ) -> SettlementResult:
        """
        Calcular el corte del período

        Args:
            sales: Ventas del período (objetos con amount, amount_card, contract_type, ...)
            outflows: Salidas de efectivo del período (objetos con amount)
            start_date: Fecha inicial (inclusive)
            end_date: Fecha final (inclusive)
            generated_by: Usuario que genera el corte

        Returns:
            SettlementResult con totales, desglose por marca y líneas por venta

        Raises:
            CorteValidationError: Si faltan fechas o end_date < start_date
        """
        validate_period(start_date, end_date)

        total_sales = ZERO
        total_card_commission = ZERO
        total_brand_share = ZERO
        total_store_share = ZERO
        brands: Dict[Any, Dict[str, Any]] = {}
        lines = []

        for sale in sales:
            line = self.calculate_sale_line(sale)
            lines.append(line)

            total_sales += line.amount
            total_card_commission += line.card_commission
            total_brand_share += line.brand_share
            total_store_share += line.store_share

            key = line.brand_id or line.brand_name
            entry = brands.get(key)
            if entry is None:
                entry = brands[key] = {
                    "brand_id": line.brand_id,
                    "brand_name": line.brand_name,
                    "brand_total": ZERO,
                    "sale_count": 0,
                }
            elif (entry["contract_type"], entry["contract_value"]) != (line.contract_type, line.contract_value):
                logger.warning(
                    f"Brand '{line.brand_name}' changed contract within period "
                    f"{compute_period_id(start_date)}: {entry['contract_type'].value} {entry['contract_value']} "
                    f"-> {line.contract_type.value} {line.contract_value}"
                )

            entry["contract_type"] = line.contract_type
            entry["contract_value"] = line.contract_value
            entry["brand_total"] += line.brand_share
            entry["sale_count"] += 1

        total_outflows = ZERO
        outflow_ids = []
        outflow_count = 0
        for outflow in outflows:
            total_outflows += quantize_money(to_decimal(getattr(outflow, "amount", None)))
            outflow_count += 1
            outflow_id = getattr(outflow, "id", None)
            if outflow_id is not None:
                outflow_ids.append(outflow_id)

        return SettlementResult(
            period_id=compute_period_id(start_date),
            start_date=start_date,
            end_date=end_date,
            total_sales=total_sales,
            total_card_commission=total_card_commission,
            total_brand_share=total_brand_share,
            total_store_share=total_store_share,
            total_outflows=total_outflows,
            sale_count=len(lines),
            outflow_count=outflow_count,
            brand_breakdown=[BrandBreakdown(**entry) for entry in brands.values()],
            lines=lines,
            outflow_ids=outflow_ids,
            generated_by=generated_by
        )
