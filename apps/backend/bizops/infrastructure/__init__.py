"""Infraestructura: pool PostgreSQL y repositorios."""
