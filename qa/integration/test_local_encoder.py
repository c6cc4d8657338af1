"""
Integration tests for LocalEncoder.

Tests:
- Lifecycle drivers, versioning and emitted events
- History cap and persistence through JsonStateStore
- Clearing and cancellation
"""

import asyncio

import pytest

from clipqueue.deliver.settings import AppSettings
from clipqueue.encoder import local
from clipqueue.encoder.errors import EncoderJobNotFoundError
from clipqueue.encoder.local import LocalEncoder
from clipqueue.events.bus import EventBus
from clipqueue.events.models import EventKind
from clipqueue.jobs.errors import InvalidStateTransitionError
from clipqueue.jobs.models import JobStatus
from clipqueue.persistence.store import JsonStateStore
from clipqueue.presets.models import BUILTIN_PRESETS

pytestmark = pytest.mark.integration


PRESET = BUILTIN_PRESETS[1]


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def events():
    return []


@pytest.fixture
def bus(events):
    bus = EventBus()

    async def record(event):
        events.append(event)

    for kind in EventKind:
        bus.subscribe(kind, record)
    return bus


@pytest.fixture
def encoder(bus):
    return LocalEncoder(bus=bus)


async def submit(encoder, name="clip"):
    return await encoder.add_job(f"/media/{name}.webm", f"/media/{name}.mp4", PRESET)


class TestLifecycle:
    """Drivers move jobs through the state machine."""

    def test_add_job_emits_job_updated(self, encoder, events):
        job_id = run(submit(encoder))

        assert [e.kind for e in events] == [EventKind.JOB_UPDATED]
        assert events[0].job_id == job_id

    def test_structural_changes_bump_version(self, encoder):
        async def scenario():
            job_id = await submit(encoder)
            await encoder.mark_ready(job_id)
            await encoder.start_job(job_id)
            await encoder.report_progress(job_id, 50.0)
            await encoder.complete_job(job_id)
            return await encoder.get_jobs()

        (job,) = run(scenario())
        assert job.status == JobStatus.COMPLETED
        assert job.version == 3

    def test_events_in_order(self, encoder, events):
        async def scenario():
            job_id = await submit(encoder)
            await encoder.start_job(job_id)
            await encoder.report_progress(job_id, 150.0)
            await encoder.complete_job(job_id)

        run(scenario())
        assert [e.kind for e in events] == [
            EventKind.JOB_UPDATED,
            EventKind.JOB_UPDATED,
            EventKind.PROGRESS,
            EventKind.CONVERSION_COMPLETE,
        ]
        assert events[2].progress == 100.0

    def test_illegal_transition_rejected(self, encoder):
        async def scenario():
            job_id = await submit(encoder)
            await encoder.complete_job(job_id)

        with pytest.raises(InvalidStateTransitionError):
            run(scenario())

    def test_unknown_job(self, encoder):
        with pytest.raises(EncoderJobNotFoundError):
            run(encoder.start_job("missing"))

    def test_get_jobs_returns_copies(self, encoder):
        async def scenario():
            await submit(encoder)
            (job,) = await encoder.get_jobs()
            job.progress = 99.0
            return await encoder.get_jobs()

        (job,) = run(scenario())
        assert job.progress == 0.0

    def test_fail_job_records_error(self, encoder, events):
        async def scenario():
            job_id = await submit(encoder)
            await encoder.start_job(job_id)
            await encoder.fail_job(job_id, "unsupported codec")
            return await encoder.get_jobs()

        (job,) = run(scenario())
        assert job.status == JobStatus.FAILED
        assert job.error == "unsupported codec"
        assert events[-1].kind == EventKind.CONVERSION_FAILED


class TestClearAndCancel:

    def test_clear_completed_keeps_active_jobs(self, encoder, events):
        async def scenario():
            done = await submit(encoder, "a")
            await submit(encoder, "b")
            await encoder.start_job(done)
            await encoder.complete_job(done)
            await encoder.clear_completed_jobs()
            return await encoder.get_jobs()

        jobs = run(scenario())
        assert [job.input_path for job in jobs] == ["/media/b.webm"]
        assert events[-1].kind == EventKind.JOBS_CLEARED

    def test_cancel_queued_job(self, encoder, events):
        async def scenario():
            job_id = await submit(encoder)
            accepted = await encoder.cancel_job(job_id)
            return accepted, await encoder.get_jobs()

        accepted, (job,) = run(scenario())
        assert accepted is True
        assert job.status == JobStatus.CANCELLED
        assert job.version == 2
        assert events[-1].kind == EventKind.JOB_UPDATED

    def test_cancel_finished_job_refused(self, encoder):
        async def scenario():
            job_id = await submit(encoder)
            await encoder.start_job(job_id)
            await encoder.complete_job(job_id)
            return await encoder.cancel_job(job_id)

        assert run(scenario()) is False


class TestHistory:

    def test_history_capped(self, encoder, monkeypatch):
        monkeypatch.setattr(local, "MAX_HISTORY", 3)

        async def scenario():
            for i in range(5):
                job_id = await submit(encoder, f"clip{i}")
                await encoder.start_job(job_id)
                await encoder.complete_job(job_id)
            return await encoder.get_history()

        history = run(scenario())
        assert [entry.input_path for entry in history] == [
            "/media/clip2.webm",
            "/media/clip3.webm",
            "/media/clip4.webm",
        ]

    def test_history_and_settings_survive_restart(self, tmp_path):
        store = JsonStateStore(tmp_path)

        async def first_session():
            encoder = LocalEncoder(store=store)
            job_id = await submit(encoder)
            await encoder.start_job(job_id)
            await encoder.complete_job(job_id, file_size_before=10, file_size_after=5)
            await encoder.save_settings(AppSettings(output_directory="/exports"))
            return job_id

        async def second_session():
            encoder = LocalEncoder(store=store)
            await encoder.restore()
            return await encoder.get_history(), await encoder.load_settings()

        job_id = run(first_session())
        history, settings = run(second_session())

        assert [entry.id for entry in history] == [job_id]
        assert history[0].file_size_after == 5
        assert settings.output_directory == "/exports"

    def test_clear_history_persists(self, tmp_path):
        store = JsonStateStore(tmp_path)

        async def scenario():
            encoder = LocalEncoder(store=store)
            job_id = await submit(encoder)
            await encoder.start_job(job_id)
            await encoder.complete_job(job_id)
            await encoder.clear_history()

        run(scenario())
        assert store.load_history() == []

    def test_corrupt_history_starts_empty(self, tmp_path):
        (tmp_path / "conversion_history.json").write_text("{not json")
        encoder = LocalEncoder(store=JsonStateStore(tmp_path))

        run(encoder.restore())

        assert run(encoder.get_history()) == []

    def test_undecodable_files_start_with_defaults(self, tmp_path):
        (tmp_path / "conversion_history.json").write_bytes(b"\xff\xfe[]")
        (tmp_path / "settings.json").write_bytes(b"\xff\xfe{}")
        encoder = LocalEncoder(store=JsonStateStore(tmp_path))

        run(encoder.restore())

        assert run(encoder.get_history()) == []
        assert run(encoder.load_settings()) == AppSettings()


class TestExistenceCheck:

    def test_existing_file(self, encoder, tmp_path):
        target = tmp_path / "clip.mp4"
        target.write_bytes(b"")

        assert run(encoder.check_path_exists(str(target))) is True
        assert run(encoder.check_path_exists(str(tmp_path / "other.mp4"))) is False
