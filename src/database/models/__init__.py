"""Database models for PlantScan API."""

from .base import Base
from .plants import Plant, PlantHistory

__all__ = [
    "Base",
    "Plant",
    "PlantHistory",
]
