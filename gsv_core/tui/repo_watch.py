"""Repository watcher: refresh the stack when git or git-spice state moves.

Polls modification times on the app's interval timer (default every
second) instead of relying on filesystem notifications. Watched paths:

1. ``HEAD``: checkouts
2. ``refs/spice/data``: git-spice's own state ref
3. ``refs/heads/**``: branch tips (commits, rebases, renames)
4. ``packed-refs``: refs moved by ``git pack-refs`` or gc

A burst of changes (a restack touches many refs) is coalesced: every
change restarts a short debounce timer, and only its expiry requests a
refresh.
"""

import os
from pathlib import Path
from typing import Callable, Optional

from gsv_core.git_ops import git_common_dir
from gsv_core.paths import configure_logger

_log = configure_logger("gsv.tui.repo_watch")

Snapshot = dict[str, float]


def watched_files(git_dir: Path) -> list[Path]:
    files = [git_dir / "HEAD", git_dir / "packed-refs", git_dir / "refs" / "spice" / "data"]
    heads = git_dir / "refs" / "heads"
    if heads.is_dir():
        for dirpath, _dirnames, filenames in os.walk(heads):
            files.extend(Path(dirpath) / name for name in filenames)
    return files


def take_snapshot(git_dir: Path) -> Snapshot:
    """Map each existing watched path to its mtime."""
    snapshot = {}
    for path in watched_files(git_dir):
        try:
            snapshot[str(path)] = path.stat().st_mtime
        except OSError:
            continue
    return snapshot


class RepoWatcher:
    """Polls one repository and calls on_change after a quiet period."""

    def __init__(self, repo: Path, on_change: Callable[[], None],
                 debounce: float = 0.3, git_dir: Optional[Path] = None):
        self.repo = repo
        self.on_change = on_change
        self.debounce = debounce
        self.git_dir = git_dir or git_common_dir(repo)
        self._snapshot: Snapshot = take_snapshot(self.git_dir) if self.git_dir else {}
        self._host = None
        self._poll_timer = None
        self._debounce_timer = None

    def poll(self) -> bool:
        """Compare against the previous snapshot; True if anything moved."""
        if self.git_dir is None:
            return False
        snapshot = take_snapshot(self.git_dir)
        changed = snapshot != self._snapshot
        if changed:
            moved = {k for k in snapshot.keys() | self._snapshot.keys()
                     if snapshot.get(k) != self._snapshot.get(k)}
            _log.debug("repo_watch: %d path(s) changed: %s", len(moved), sorted(moved)[:5])
        self._snapshot = snapshot
        return changed

    def _tick(self) -> None:
        try:
            changed = self.poll()
        except Exception:
            _log.exception("repo_watch: poll failed")
            return
        if changed:
            self._schedule()

    def _schedule(self) -> None:
        if self._debounce_timer is not None:
            self._debounce_timer.stop()
        self._debounce_timer = self._host.set_timer(self.debounce, self._fire)

    def _fire(self) -> None:
        self._debounce_timer = None
        _log.info("repo_watch: change detected in %s", self.repo)
        self.on_change()

    def start(self, host, interval: float = 1.0) -> None:
        """Start polling on host's timers (a Textual app or widget).

        Safe to call multiple times; will not create duplicate timers.
        """
        if self._poll_timer is not None:
            return
        if self.git_dir is None:
            _log.warning("repo_watch: no git directory for %s, not watching", self.repo)
            return
        self._host = host
        self._poll_timer = host.set_interval(interval, self._tick)
        _log.info("repo_watch: watching %s (interval=%.1fs)", self.git_dir, interval)

    def stop(self) -> None:
        for timer in (self._poll_timer, self._debounce_timer):
            if timer is not None:
                timer.stop()
        self._poll_timer = None
        self._debounce_timer = None
