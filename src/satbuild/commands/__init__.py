"""Command implementations for the satbuild CLI."""

from .clean import CleanResult, clean_project

__all__ = ["CleanResult", "clean_project"]
