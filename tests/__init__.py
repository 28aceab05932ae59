"""
Suite de tests para el sistema de migración legacy → nuevo schema.

Los tests NO tocan una base de datos real: el pipeline corre sobre stores
en memoria (tests/helpers.py) y valida:
- Sintaxis de código Python
- Implementación correcta de interfaces
- Normalización, resolución, lookups y transformación por entidad
- Orquestación end-to-end, idempotencia y limpieza de datos de prueba
"""
