"""Borde de identidad: credenciales, principals, evaluador y links firmados."""
