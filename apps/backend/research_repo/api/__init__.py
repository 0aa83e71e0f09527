"""Aplicación FastAPI (entrypoint, lifespan, handlers de error)."""
