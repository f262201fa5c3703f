"""Tests for temp-file tracking and tracker-gated deletion."""

import os
import threading
import time

import pytest

from snapshare.runtime.file_tracker import ArtifactFileTracker
from snapshare.runtime.janitor import FileJanitor


@pytest.fixture
def tracker():
    return ArtifactFileTracker()


@pytest.fixture
def janitor(tracker):
    return FileJanitor(tracker)


class TestArtifactFileTracker:
    """Register / unregister / is_active contract."""

    def test_register_marks_path_active(self, tracker):
        tracker.register("/tmp/a.mp4")
        assert tracker.is_active("/tmp/a.mp4")
        assert tracker.is_active("/tmp/a.mp4")

    def test_unregister_clears_path(self, tracker):
        tracker.register("/tmp/a.mp4")
        tracker.unregister("/tmp/a.mp4")
        assert not tracker.is_active("/tmp/a.mp4")

    def test_unregister_unknown_path_is_noop(self, tracker):
        tracker.unregister("/tmp/never-registered.mp4")
        assert not tracker.is_active("/tmp/never-registered.mp4")
        assert tracker.active_paths() == frozenset()

    def test_registrations_are_reference_counted(self, tracker):
        tracker.register("/tmp/a.mp4")
        tracker.register("/tmp/a.mp4")
        tracker.unregister("/tmp/a.mp4")
        assert tracker.is_active("/tmp/a.mp4")
        tracker.unregister("/tmp/a.mp4")
        assert not tracker.is_active("/tmp/a.mp4")

    def test_str_and_path_forms_are_equivalent(self, tracker, tmp_path):
        path = tmp_path / "clip.mp4"
        tracker.register(path)
        assert tracker.is_active(str(path))

    def test_concurrent_disjoint_paths_lose_no_updates(self, tracker):
        threads_count = 16
        per_thread = 200
        barrier = threading.Barrier(threads_count)

        def worker(n):
            barrier.wait()
            for i in range(per_thread):
                tracker.register(f"/tmp/{n}-{i}")
            for i in range(0, per_thread, 2):
                tracker.unregister(f"/tmp/{n}-{i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(threads_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        active = tracker.active_paths()
        assert len(active) == threads_count * per_thread // 2
        assert all(int(p.rsplit("-", 1)[1]) % 2 == 1 for p in active)


class TestFileJanitor:
    """Deletion always consults the tracker first."""

    def test_delete_if_inactive_removes_file(self, janitor, tmp_path):
        path = tmp_path / "shot.png"
        path.write_bytes(b"x")
        assert janitor.delete_if_inactive(path) is True
        assert not path.exists()

    def test_active_file_is_not_deleted(self, janitor, tracker, tmp_path):
        path = tmp_path / "shot.png"
        path.write_bytes(b"x")
        tracker.register(path)
        assert janitor.delete_if_inactive(path) is False
        assert path.exists()

    def test_missing_file_is_noop(self, janitor, tmp_path):
        assert janitor.delete_if_inactive(tmp_path / "gone.png") is False

    def test_on_deleted_callback(self, tracker, tmp_path):
        deleted = []
        janitor = FileJanitor(tracker, on_deleted=deleted.append)
        path = tmp_path / "shot.png"
        path.write_bytes(b"x")
        janitor.delete_if_inactive(path)
        assert deleted == [path]

    def test_delete_later_waits_for_delay(self, janitor, tmp_path):
        path = tmp_path / "rec.mp4"
        path.write_bytes(b"x")
        timer = janitor.delete_later(path, 0.05)
        assert path.exists()
        timer.join(2)
        assert not path.exists()

    def test_delete_later_respects_tracker_at_fire_time(self, janitor, tracker, tmp_path):
        path = tmp_path / "rec.mp4"
        path.write_bytes(b"x")
        timer = janitor.delete_later(path, 0.05)
        tracker.register(path)
        timer.join(2)
        assert path.exists()

    def test_cancel_pending(self, janitor, tmp_path):
        path = tmp_path / "rec.mp4"
        path.write_bytes(b"x")
        timer = janitor.delete_later(path, 0.5)
        janitor.cancel_pending()
        timer.join(2)
        assert path.exists()

    def test_sweep_stale_removes_only_old_inactive_files(self, janitor, tracker, tmp_path):
        now = time.time()
        old = tmp_path / "old.png"
        old_active = tmp_path / "old-active.mp4"
        fresh = tmp_path / "fresh.png"
        for p in (old, old_active, fresh):
            p.write_bytes(b"x")
        for p in (old, old_active):
            os.utime(p, (now - 7200, now - 7200))
        tracker.register(old_active)

        removed = janitor.sweep_stale(tmp_path, max_age=3600, now=now)

        assert removed == [old]
        assert old_active.exists()
        assert fresh.exists()

    def test_sweep_missing_directory(self, janitor, tmp_path):
        assert janitor.sweep_stale(tmp_path / "nope") == []
