"""
Errores de dominio del módulo de cortes
"""
from typing import Optional


class CorteError(Exception):
    """Error base del cálculo de cortes"""


class CorteValidationError(CorteError):
    """Rango de fechas inválido o incompleto"""


class PeriodAlreadySettledError(CorteError):
    """Ya existe un corte que cubre el período solicitado"""

    def __init__(self, period_id: str, message: Optional[str] = None):
        self.period_id = period_id
        super().__init__(message or f"Ya existe un corte para el período {period_id}")
