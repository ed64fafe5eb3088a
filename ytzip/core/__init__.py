"""
Core application engine for building playlist archives.

The `ArchiveJob` acts as the per-request coordinator, delegating each
playlist item to the `ItemFetcher` through the `FetchScheduler` and feeding
the finished files to the archive assembler.
"""
