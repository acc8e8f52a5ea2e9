"""Vessels module."""

from src.modules.vessels.repository import VesselRepository

__all__ = [
    "VesselRepository",
]
