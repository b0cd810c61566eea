"""Startup composition — the application task graph and its runner."""

from liftoff.bootstrap.app import Bootstrapper, make_fallback, with_tracking
from liftoff.bootstrap.graph import DEFAULT_GRAPH, SubsystemSpec

__all__ = [
    "DEFAULT_GRAPH",
    "Bootstrapper",
    "SubsystemSpec",
    "make_fallback",
    "with_tracking",
]
