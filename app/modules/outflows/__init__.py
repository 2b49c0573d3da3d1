"""Módulo de Salidas de efectivo"""
