"""Tests for gsv_core.tui.repo_watch — mtime polling and debounce."""

import os
from pathlib import Path

import pytest

from gsv_core.tui.repo_watch import RepoWatcher, take_snapshot, watched_files
from tests.conftest import FakeContainer


class FakeHost(FakeContainer):
    def __init__(self):
        super().__init__()
        self.intervals = []

    def set_interval(self, interval, callback):
        timer = self.set_timer(interval, callback)
        self.timers.remove(timer)
        self.intervals.append(timer)
        return timer


@pytest.fixture
def git_dir(tmp_path):
    d = tmp_path / ".git"
    (d / "refs" / "heads" / "feature").mkdir(parents=True)
    (d / "HEAD").write_text("ref: refs/heads/main\n")
    (d / "refs" / "heads" / "main").write_text("aaaa\n")
    (d / "refs" / "heads" / "feature" / "one").write_text("bbbb\n")
    return d


def bump(path: Path) -> None:
    stat = path.stat()
    os.utime(path, (stat.st_atime, stat.st_mtime + 10))


class TestSnapshot:
    def test_watched_files_include_nested_heads(self, git_dir):
        files = {p.relative_to(git_dir).as_posix() for p in watched_files(git_dir)}
        assert {"HEAD", "packed-refs", "refs/spice/data",
                "refs/heads/main", "refs/heads/feature/one"} <= files

    def test_snapshot_skips_missing(self, git_dir):
        snapshot = take_snapshot(git_dir)
        assert str(git_dir / "HEAD") in snapshot
        assert str(git_dir / "packed-refs") not in snapshot


class TestPoll:
    def test_no_change(self, tmp_path, git_dir):
        watcher = RepoWatcher(tmp_path, on_change=lambda: None, git_dir=git_dir)
        assert watcher.poll() is False

    def test_head_moved(self, tmp_path, git_dir):
        watcher = RepoWatcher(tmp_path, on_change=lambda: None, git_dir=git_dir)
        bump(git_dir / "HEAD")
        assert watcher.poll() is True
        assert watcher.poll() is False

    def test_new_branch(self, tmp_path, git_dir):
        watcher = RepoWatcher(tmp_path, on_change=lambda: None, git_dir=git_dir)
        (git_dir / "refs" / "heads" / "other").write_text("cccc\n")
        assert watcher.poll() is True

    def test_spice_ref_created(self, tmp_path, git_dir):
        watcher = RepoWatcher(tmp_path, on_change=lambda: None, git_dir=git_dir)
        (git_dir / "refs" / "spice").mkdir()
        (git_dir / "refs" / "spice" / "data").write_text("dddd\n")
        assert watcher.poll() is True

    def test_deleted_branch(self, tmp_path, git_dir):
        watcher = RepoWatcher(tmp_path, on_change=lambda: None, git_dir=git_dir)
        (git_dir / "refs" / "heads" / "feature" / "one").unlink()
        assert watcher.poll() is True


class TestDebounce:
    def test_burst_fires_once(self, tmp_path, git_dir):
        calls = []
        watcher = RepoWatcher(tmp_path, on_change=lambda: calls.append(1), git_dir=git_dir)
        host = FakeHost()
        watcher.start(host, interval=1.0)

        bump(git_dir / "HEAD")
        watcher._tick()
        bump(git_dir / "refs" / "heads" / "main")
        watcher._tick()

        assert calls == []
        assert len(host.timers) == 2
        assert host.timers[0].stopped
        host.fire_timers()
        assert calls == [1]

    def test_quiet_tick_schedules_nothing(self, tmp_path, git_dir):
        watcher = RepoWatcher(tmp_path, on_change=lambda: None, git_dir=git_dir)
        host = FakeHost()
        watcher.start(host)
        watcher._tick()
        assert host.timers == []

    def test_start_is_idempotent(self, tmp_path, git_dir):
        watcher = RepoWatcher(tmp_path, on_change=lambda: None, git_dir=git_dir)
        host = FakeHost()
        watcher.start(host)
        watcher.start(host)
        assert len(host.intervals) == 1

    def test_stop_cancels_timers(self, tmp_path, git_dir):
        calls = []
        watcher = RepoWatcher(tmp_path, on_change=lambda: calls.append(1), git_dir=git_dir)
        host = FakeHost()
        watcher.start(host)
        bump(git_dir / "HEAD")
        watcher._tick()
        watcher.stop()
        host.fire_timers()
        assert calls == []
        assert host.intervals[0].stopped

    def test_no_git_dir_never_starts(self, tmp_path, monkeypatch):
        monkeypatch.setattr("gsv_core.tui.repo_watch.git_common_dir", lambda repo: None)
        watcher = RepoWatcher(tmp_path, on_change=lambda: None)
        host = FakeHost()
        watcher.start(host)
        assert host.intervals == []
        assert watcher.poll() is False
