"""Configurator: declarative rule validation for product configurations."""

__version__ = "1.0.0"
