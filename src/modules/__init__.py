"""Modules package - Domain modules with repository pattern."""

from src.modules.vessels import VesselRepository

__all__ = [
    "VesselRepository",
]
