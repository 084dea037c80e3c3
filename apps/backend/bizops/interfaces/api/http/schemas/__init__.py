"""DTOs HTTP (pydantic v2) por recurso."""
