"""Research repository API: access control and secure delivery of stored artifacts."""

__version__ = "0.1.0"
