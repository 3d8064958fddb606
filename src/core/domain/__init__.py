"""Dominio de la resolución: descriptores, intentos, resultados y errores.

El dominio no conoce HTTP, CLI ni FastAPI: solo conceptos del problema.
"""
