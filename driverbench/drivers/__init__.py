"""
Driver handles and the factory that builds them.

A driver is one client implementation for reaching the benchmark backend:
a pooled asyncpg socket pool, a single direct asyncpg connection, or an HTTP
query endpoint. All of them expose the same ``DriverHandle`` interface.
"""

from .base import DriverHandle, DriverType
from .factory import DRIVER_BUILDERS, DriverFactory, parse_driver_type

__all__ = [
    "DriverHandle",
    "DriverType",
    "DriverFactory",
    "DRIVER_BUILDERS",
    "parse_driver_type",
]
