"""
Media Processing Layer.

This package is responsible for choosing an encoding for each item and for
transferring its bytes from the source.
"""

from .downloader import Downloader
from .formats import find_option, select_best_option

__all__ = ["Downloader", "find_option", "select_best_option"]
