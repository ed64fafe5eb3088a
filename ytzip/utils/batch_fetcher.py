"""
Batch metadata fetching utilities for playlist-wide format lookups.
Resolves many items in parallel with proper error handling.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from ytzip.api.base import FormatResolver
from ytzip.models.media import PlaylistItem, ResolvedMedia

log = logging.getLogger(__name__)


class BatchMetadataFetcher:
    """
    Handles batch resolution of items with bounded concurrency and per-item
    error recovery.
    """

    def __init__(self, resolver: FormatResolver, max_concurrent: int = 4):
        """
        Args:
            resolver: Anything implementing FormatResolver.
            max_concurrent: Maximum number of concurrent lookups.
        """
        self.resolver = resolver
        self.semaphore = asyncio.Semaphore(max_concurrent)

    async def resolve_items_batch(
        self, items: List[PlaylistItem]
    ) -> Dict[str, Optional[ResolvedMedia]]:
        """
        Resolves multiple items in parallel.

        Returns:
            Dictionary mapping item URL -> resolved media (or None if failed).
        """
        if not items:
            return {}

        log.debug(f"Batch resolving formats for {len(items)} items...")

        async def resolve_single(item: PlaylistItem) -> tuple[str, Optional[ResolvedMedia]]:
            async with self.semaphore:
                try:
                    return item.url, await self.resolver.resolve(item.url)
                except Exception as e:
                    log.warning(f"Failed to fetch formats for {item.url}: {e}")
                    return item.url, None

        results = await asyncio.gather(*(resolve_single(item) for item in items))
        return dict(results)
