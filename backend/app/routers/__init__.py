"""Router modules for the report viewer."""

from . import runs

__all__ = ["runs"]
