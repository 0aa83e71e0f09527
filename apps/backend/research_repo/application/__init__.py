"""Capa de aplicación: casos de uso del repositorio (entrega, catálogo, publicación)."""
