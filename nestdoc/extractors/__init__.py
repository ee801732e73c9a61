"""Extractors turning indexed sources into endpoint and interface records."""

from .interfaces import InterfaceMiner
from .routes import RouteExtractor

__all__ = ["InterfaceMiner", "RouteExtractor"]
