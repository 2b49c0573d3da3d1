"""
Módulo de Cortes - liquidación de período

ENTIDADES PRINCIPALES:
- Corte: resumen inmutable de un período, único por period_id (MMYY)
- CorteBrand: desglose por marca
- CorteSale / CorteOutflow: ventas y salidas incluidas

REGLAS DE REPARTO (neto = monto - 4.6% de la parte con tarjeta):
- DCE y Piso: todo el neto a la marca
- Porcentaje: la tienda retiene contract_value % del neto
- Estetica Unisex: marca y tienda reportan el neto completo

Una vez generado el corte, no se aceptan ventas ni salidas con fecha
dentro del período.
"""
