"""Local-first group chat synchronization engine and its store service."""
from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
