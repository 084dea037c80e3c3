"""Dominio: reglas puras (formatos de secuencia) y contratos de persistencia."""
