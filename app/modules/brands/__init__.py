"""Módulo de Marcas: contrato con la tienda y productos consignados"""
