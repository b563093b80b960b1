"""A 2D ball physics sandbox with a small sprite engine and a PNG decoder."""

__version__ = "0.2.0"