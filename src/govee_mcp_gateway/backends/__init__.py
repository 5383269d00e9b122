"""Backend implementations for device command dispatch."""

from __future__ import annotations

from .base import Backend
from .cloud import CloudBackend
from .lan import LanBackend

__all__ = [
    "Backend",
    "CloudBackend",
    "LanBackend",
]
