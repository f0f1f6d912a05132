"""Obstetric care billing optimization."""

__version__ = "0.1.0"
