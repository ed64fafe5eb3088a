import asyncio
import io
import zipfile

import pytest
from fakes import MemoryOutput

from ytzip.exceptions import ArchiveFatalError
from ytzip.storage.archive import ArchiveAssembler


def _read_zip(data: bytes) -> dict[str, bytes]:
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert zf.testzip() is None
        return {info.filename: zf.read(info) for info in zf.infolist()}


def test_entries_round_trip_as_stored(tmp_path):
    first = tmp_path / "a.mp3"
    second = tmp_path / "b.mp4"
    first.write_bytes(b"A" * 5000)
    second.write_bytes(b"")

    async def scenario():
        output = MemoryOutput()
        assembler = ArchiveAssembler(output)
        assert await assembler.add_file(first, "001 - a.mp3")
        assert await assembler.add_file(second, "002 - b.mp4")
        await assembler.finalize()
        await assembler.finalize()
        return output, assembler

    output, assembler = asyncio.run(scenario())
    assert assembler.entries == ["001 - a.mp3", "002 - b.mp4"]
    assert assembler.bytes_written == len(output.data)
    assert _read_zip(bytes(output.data)) == {"001 - a.mp3": b"A" * 5000, "002 - b.mp4": b""}
    with zipfile.ZipFile(io.BytesIO(bytes(output.data))) as zf:
        assert {i.compress_type for i in zf.infolist()} == {zipfile.ZIP_STORED}


def test_chunks_are_streamed_before_finalize(tmp_path, monkeypatch):
    monkeypatch.setattr("ytzip.storage.archive.READ_CHUNK_SIZE", 1000)
    source = tmp_path / "big.mp3"
    source.write_bytes(b"z" * 10_000)

    async def scenario():
        output = MemoryOutput()
        assembler = ArchiveAssembler(output)
        await assembler.add_file(source, "big.mp3")
        return output

    output = asyncio.run(scenario())
    assert output.writes >= 10
    assert len(output.data) > 10_000


def test_vanished_file_is_a_warning(tmp_path):
    async def scenario():
        output = MemoryOutput()
        assembler = ArchiveAssembler(output)
        added = await assembler.add_file(tmp_path / "missing.mp3", "001 - missing.mp3")
        await assembler.finalize()
        return added, assembler, output

    added, assembler, output = asyncio.run(scenario())
    assert added is False
    assert assembler.warnings == 1
    assert _read_zip(bytes(output.data)) == {}


def test_output_failure_is_fatal(tmp_path):
    source = tmp_path / "a.mp3"
    source.write_bytes(b"data")

    async def scenario():
        assembler = ArchiveAssembler(MemoryOutput(fail_after=0))
        await assembler.add_file(source, "a.mp3")

    with pytest.raises(ArchiveFatalError):
        asyncio.run(scenario())


def test_no_entries_after_finalize(tmp_path):
    source = tmp_path / "a.mp3"
    source.write_bytes(b"data")

    async def scenario():
        assembler = ArchiveAssembler(MemoryOutput())
        await assembler.finalize()
        await assembler.add_file(source, "a.mp3")

    with pytest.raises(ArchiveFatalError):
        asyncio.run(scenario())


def test_unreadable_staged_file_is_a_warning(tmp_path):
    # A directory can be stat'ed but not opened for reading.
    unreadable = tmp_path / "001 - a.mp3"
    unreadable.mkdir()

    async def scenario():
        output = MemoryOutput()
        assembler = ArchiveAssembler(output)
        added = await assembler.add_file(unreadable, "001 - a.mp3")
        await assembler.finalize()
        return added, assembler, output

    added, assembler, output = asyncio.run(scenario())
    assert added is False
    assert assembler.warnings == 1
    assert _read_zip(bytes(output.data)) == {}


class _FailingReader:
    async def read(self, size):
        raise OSError(5, "Input/output error")

    async def close(self):
        pass


def test_read_error_mid_entry_is_fatal(tmp_path, monkeypatch):
    source = tmp_path / "a.mp3"
    source.write_bytes(b"data")

    async def failing_open(*args, **kwargs):
        return _FailingReader()

    monkeypatch.setattr("ytzip.storage.archive.aiofiles.open", failing_open)

    async def scenario():
        assembler = ArchiveAssembler(MemoryOutput())
        await assembler.add_file(source, "a.mp3")

    with pytest.raises(ArchiveFatalError):
        asyncio.run(scenario())
