"""Language parsers."""

from .ts_parser import SourceModule, TSParser

__all__ = ["SourceModule", "TSParser"]
