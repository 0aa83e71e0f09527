"""Dominio: documentos de investigación, principals, capabilities y reglas de acceso."""
