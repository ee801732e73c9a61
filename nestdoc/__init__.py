"""Static documentation generator for NestJS-style TypeScript backends."""

__version__ = "0.1.0"

__all__ = ["__version__"]
