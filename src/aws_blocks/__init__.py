"""Schema-driven AWS operation blocks with optional role delegation."""

__version__ = "0.1.0"
