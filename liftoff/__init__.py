"""Liftoff — dependency-aware startup scheduler."""

__version__ = "0.1.0"
