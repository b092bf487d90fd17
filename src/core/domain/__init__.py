"""Modelos y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2), las
  tablas del contrato de cable y los errores de uso.
- El dominio no conoce HTTP, CLI, ni SDKs: solo conceptos del problema.
"""
