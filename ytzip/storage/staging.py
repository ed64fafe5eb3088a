"""
Manages the scratch directory that holds the in-flight files of one archive job.
"""

import asyncio
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from ytzip.exceptions import StagingError

log = logging.getLogger(__name__)

STAGING_PREFIX = "ytzip-"


class StagingArea:
    """
    A uniquely named directory owned by a single job.

    cleanup() may be called any number of times from any number of places
    (normal completion, client disconnect, error paths); the directory is
    removed only once.
    """

    def __init__(self, root: Optional[Path] = None, prefix: str = STAGING_PREFIX):
        self.root = Path(root) if root else None
        self.prefix = prefix
        self.path: Optional[Path] = None
        self._cleaned = False

    @property
    def cleaned(self) -> bool:
        return self._cleaned

    async def create(self) -> Path:
        """Creates the staging directory. Failure is fatal to the job."""
        if self.path is not None:
            return self.path
        try:
            if self.root:
                await asyncio.to_thread(self.root.mkdir, parents=True, exist_ok=True)
            created = await asyncio.to_thread(
                tempfile.mkdtemp, prefix=self.prefix, dir=self.root
            )
        except OSError as e:
            raise StagingError(f"Could not create staging directory: {e}") from e
        self.path = Path(created)
        log.debug(f"Created staging directory '{self.path}'.")
        return self.path

    async def discard(self, file_path: Path) -> None:
        """Deletes a single staged file once it is no longer needed."""
        try:
            await asyncio.to_thread(file_path.unlink, missing_ok=True)
        except OSError as e:
            log.warning(f"[yellow]Could not delete staged file '{file_path}': {e}[/yellow]")

    async def cleanup(self) -> None:
        """Removes the staging directory recursively. Best effort, runs once."""
        if self._cleaned:
            return
        self._cleaned = True
        if self.path is None:
            return

        def _remove(path: Path) -> bool:
            shutil.rmtree(path, ignore_errors=True)
            return not path.exists()

        if await asyncio.to_thread(_remove, self.path):
            log.debug(f"Removed staging directory '{self.path}'.")
        else:
            log.warning(
                f"[yellow]Staging directory '{self.path}' could not be fully removed."
                "[/yellow]"
            )

    async def __aenter__(self) -> "StagingArea":
        await self.create()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.cleanup()
