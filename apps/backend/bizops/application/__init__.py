"""Capa de aplicación: reglas de negocio sin HTTP (allocator, facturación, seed)."""
