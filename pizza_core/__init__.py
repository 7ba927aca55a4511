"""Data and identity core of the pizza ordering service."""

__version__ = "0.1.0"
