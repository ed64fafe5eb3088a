"""
Builds a ZIP archive incrementally and streams it to an async output.

The standard zipfile writer is pointed at an unseekable in-memory sink, so
it emits local headers, data and data descriptors strictly in order. After
every chunk the sink is drained into the output, which keeps memory use at
roughly one chunk regardless of archive size and lets the output's write
backpressure pace the whole pipeline.
"""

import asyncio
import logging
import zipfile
from pathlib import Path
from typing import Any, Protocol

import aiofiles

from ytzip.exceptions import ArchiveFatalError

log = logging.getLogger(__name__)

READ_CHUNK_SIZE = 1048576  # 1 MB


class AsyncOutput(Protocol):
    async def write(self, data: bytes) -> Any: ...


class _StreamSink:
    """Write-only buffer handed to ZipFile. It has no tell() or seek()."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def write(self, data: bytes) -> int:
        self._buffer.extend(data)
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        data = bytes(self._buffer)
        self._buffer.clear()
        return data


class ArchiveAssembler:
    """
    Writes stored (uncompressed) ZIP64 entries to an async output.

    Only one coroutine may use an assembler at a time; the archive job runs a
    single consumer task for exactly that reason.
    """

    def __init__(self, output: AsyncOutput):
        self._output = output
        self._sink = _StreamSink()
        self._zip = zipfile.ZipFile(
            self._sink, mode="w", compression=zipfile.ZIP_STORED, allowZip64=True
        )
        self._finalized = False
        self.entries: list[str] = []
        self.bytes_written = 0
        self.warnings = 0

    async def _flush(self) -> None:
        data = self._sink.drain()
        if not data:
            return
        try:
            await self._output.write(data)
        except (ConnectionError, OSError, RuntimeError) as e:
            # aiohttp raises ConnectionResetError (or RuntimeError on a closed
            # transport) once the client has gone away.
            raise ArchiveFatalError(f"Archive output failed: {e}") from e
        self.bytes_written += len(data)

    async def add_file(self, source_path: Path, arcname: str) -> bool:
        """
        Appends a fully written file as a stored entry.

        Returns False, with a warning, if the file has vanished or cannot be
        opened; that never aborts the archive. A read error after the entry
        has started raises ArchiveFatalError.
        """
        if self._finalized:
            raise ArchiveFatalError("Cannot add entries to a finalized archive.")
        try:
            zinfo = await asyncio.to_thread(zipfile.ZipInfo.from_file, source_path, arcname)
        except OSError as e:
            self.warnings += 1
            log.warning(
                f"[yellow]Staged file unavailable, skipping entry '{arcname}': {e}[/yellow]"
            )
            return False
        zinfo.compress_type = zipfile.ZIP_STORED

        try:
            src = await aiofiles.open(source_path, "rb")
        except OSError as e:
            self.warnings += 1
            log.warning(
                f"[yellow]Cannot open staged file, skipping entry '{arcname}': {e}[/yellow]"
            )
            return False

        # Once the local header is out, a read error leaves the entry truncated.
        try:
            with self._zip.open(zinfo, mode="w", force_zip64=True) as entry:
                while chunk := await src.read(READ_CHUNK_SIZE):
                    entry.write(chunk)
                    await self._flush()
        except OSError as e:
            raise ArchiveFatalError(f"Reading staged file for '{arcname}' failed: {e}") from e
        except zipfile.LargeZipFile as e:
            raise ArchiveFatalError(f"Archive entry '{arcname}' is too large: {e}") from e
        finally:
            await src.close()

        # Data descriptor written when the entry closed.
        await self._flush()
        self.entries.append(arcname)
        log.debug(f"Archived entry '{arcname}' ({zinfo.file_size} bytes).")
        return True

    async def finalize(self) -> None:
        """Writes the central directory and flushes it. Safe to call twice."""
        if self._finalized:
            return
        self._finalized = True
        self._zip.close()
        await self._flush()
        log.debug(f"Archive finalized with {len(self.entries)} entries.")
