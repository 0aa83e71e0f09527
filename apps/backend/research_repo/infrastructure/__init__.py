"""Adapters de infraestructura: storage, base de datos y repositorios."""
