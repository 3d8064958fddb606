"""Interfaces/abstracciones del Core.

- `SearchProvider`: lo que implementan los clientes de `adapters.providers`.
- `RandomSource`: el orden de mirrors se baraja con una fuente inyectable.
"""
