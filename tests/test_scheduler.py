import asyncio

from fakes import FakeResolver, FakeTransport, make_playlist

from ytzip.core.item_fetcher import ItemFetcher
from ytzip.core.scheduler import FetchScheduler, build_tasks
from ytzip.models.media import MediaKind, OutcomeStatus


def test_build_tasks_binds_ordinals_up_front():
    tasks = build_tasks(make_playlist(1200).items)
    assert [t.ordinal for t in tasks[:3]] == [1, 2, 3]
    assert tasks[-1].ordinal == 1200
    assert {t.pad_width for t in tasks} == {4}
    assert tasks[4].prefix == "0005"


def test_concurrency_is_bounded(tmp_path):
    resolver = FakeResolver(delay=0.02)
    fetcher = ItemFetcher(resolver, FakeTransport(), tmp_path, MediaKind.AUDIO)
    scheduler = FetchScheduler(fetcher, limit=3)

    outcomes = asyncio.run(scheduler.run(build_tasks(make_playlist(10).items)))

    assert resolver.peak <= 3
    assert scheduler.peak_active == 3
    assert scheduler.active == 0
    assert [o.task.ordinal for o in outcomes] == list(range(1, 11))
    assert all(o.status is OutcomeStatus.READY for o in outcomes)


def test_limit_never_exceeds_task_count(tmp_path):
    fetcher = ItemFetcher(FakeResolver(), FakeTransport(), tmp_path, MediaKind.AUDIO)
    scheduler = FetchScheduler(fetcher, limit=8)
    assert scheduler.effective_limit(2) == 2
    asyncio.run(scheduler.run(build_tasks(make_playlist(2).items)))
    assert scheduler.peak_active <= 2


def test_ordinals_survive_failures_and_skips(tmp_path):
    playlist = make_playlist(5)
    urls = [i.url for i in playlist.items]
    resolver = FakeResolver(fail=[urls[1]], no_formats=[urls[3]])
    fetcher = ItemFetcher(resolver, FakeTransport(), tmp_path, MediaKind.AUDIO)
    completed = []

    async def on_complete(outcome):
        completed.append(outcome.task.ordinal)

    outcomes = asyncio.run(
        FetchScheduler(fetcher, 2).run(build_tasks(playlist.items), on_complete)
    )
    assert sorted(completed) == [1, 2, 3, 4, 5]
    assert [o.status for o in outcomes] == [
        OutcomeStatus.READY,
        OutcomeStatus.FAILED,
        OutcomeStatus.READY,
        OutcomeStatus.SKIPPED,
        OutcomeStatus.READY,
    ]
    assert outcomes[4].entry_name.startswith("005 - ")


def test_failed_transfer_leaves_no_partial_file(tmp_path):
    playlist = make_playlist(2)
    transport = FakeTransport(fail=[playlist.items[0].url])
    fetcher = ItemFetcher(FakeResolver(), transport, tmp_path, MediaKind.VIDEO)

    outcomes = asyncio.run(FetchScheduler(fetcher, 2).run(build_tasks(playlist.items)))

    assert outcomes[0].status is OutcomeStatus.FAILED
    assert outcomes[0].staged_path is None
    assert outcomes[1].entry_name.endswith(".mp4")
    assert [p.name for p in tmp_path.iterdir()] == ["002.mp4"]


def test_staged_files_are_named_by_ordinal_not_title(tmp_path):
    playlist = make_playlist(1)
    title = "漢" * 100
    resolver = FakeResolver(titles={playlist.items[0].url: title})
    fetcher = ItemFetcher(resolver, FakeTransport(), tmp_path, MediaKind.AUDIO)

    outcome = asyncio.run(FetchScheduler(fetcher, 1).run(build_tasks(playlist.items)))[0]

    assert outcome.status is OutcomeStatus.READY
    assert outcome.staged_path == tmp_path / "001.mp3"
    assert outcome.entry_name.startswith("001 - ")
