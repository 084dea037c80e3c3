"""Capa de entrada HTTP: app FastAPI, auth y handlers de error."""
