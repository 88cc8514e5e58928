"""Grace hash join over a simulated paged disk and fixed-size memory."""

__version__ = "0.1.0"
__all__ = ["storage", "join", "cli"]