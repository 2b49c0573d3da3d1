"""
Módulo de Ventas

Cada venta guarda copia de la marca, el producto y el contrato vigente,
descuenta una unidad de existencia y recibe un folio YYMM + secuencia.
"""
