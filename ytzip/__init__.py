"""
ytzip: stream whole playlists to clients as a single ZIP archive.
"""

__version__ = "1.0.0"
