"""Routers HTTP por recurso."""
