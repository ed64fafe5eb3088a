"""
Storage Layer.

This package handles everything that touches disk: the per-job staging
directory, the streaming ZIP archive, and configuration loading.
"""

from .archive import ArchiveAssembler
from .config_manager import ConfigManager
from .staging import StagingArea

__all__ = ["ArchiveAssembler", "ConfigManager", "StagingArea"]
