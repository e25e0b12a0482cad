"""satbuild - incremental Sega Saturn disc image builder."""

__version__ = "0.1.0"
