"""Shared test helpers for gsv_core tests."""

import json

import pytest

from gsv_core.branch_model import BranchLink, BranchRecord, CommitRecord


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point GSV_HOME at a temp dir and clear env overrides."""
    home = tmp_path / "gsv-home"
    monkeypatch.setenv("GSV_HOME", str(home))
    monkeypatch.delenv("GSV_GS", raising=False)
    monkeypatch.delenv("GSV_REPO", raising=False)
    return home


def branch(name: str, current: bool = False, down: str | None = None,
           ups: tuple[str, ...] = (), down_restack: bool = False,
           restack_ups: tuple[str, ...] = (), commits=None, **kwargs) -> BranchRecord:
    """Build a BranchRecord with terse link arguments."""
    return BranchRecord(
        name=name,
        current=current,
        down=BranchLink(down, needs_restack=down_restack) if down else None,
        ups=tuple(BranchLink(u, needs_restack=u in restack_ups) for u in ups),
        commits=tuple(CommitRecord(sha, subject) for sha, subject in commits) if commits is not None else None,
        **kwargs,
    )


def json_lines(*records: dict) -> str:
    return "\n".join(json.dumps(r) for r in records) + "\n"


# ---------------------------------------------------------------------------
# Fakes for the Textual container API used by the reconciliation engine
# ---------------------------------------------------------------------------

class FakeTimer:
    def __init__(self, delay: float, callback):
        self.delay = delay
        self.callback = callback
        self.stopped = False
        self.fired = False

    def stop(self) -> None:
        self.stopped = True

    def fire(self) -> None:
        if not self.stopped and not self.fired:
            self.fired = True
            self.callback()


class FakeElement:
    def __init__(self, key: str, item=None):
        self.key = key
        self.item = item
        self.classes: set[str] = set()
        self.parent = None
        self.remove_calls = 0

    def add_class(self, name: str):
        self.classes.add(name)
        return self

    def remove_class(self, name: str):
        self.classes.discard(name)
        return self

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def remove(self) -> None:
        self.remove_calls += 1
        if self.parent is not None:
            self.parent._children.remove(self)
            self.parent = None

    def __repr__(self) -> str:
        return f"FakeElement({self.key!r})"


class FakeContainer:
    """Records mounts and moves; timers fire only when asked."""

    def __init__(self):
        self._children: list[FakeElement] = []
        self.timers: list[FakeTimer] = []
        self.ops: list[tuple[str, str]] = []

    @property
    def children(self) -> tuple:
        return tuple(self._children)

    def _insert(self, element, before=None, after=None) -> None:
        if before is not None:
            self._children.insert(self._children.index(before), element)
        elif after is not None:
            self._children.insert(self._children.index(after) + 1, element)
        else:
            self._children.append(element)

    def mount(self, element, before=None, after=None) -> None:
        element.parent = self
        self._insert(element, before=before, after=after)
        self.ops.append(("mount", element.key))

    def move_child(self, element, before=None, after=None) -> None:
        assert before is not element and after is not element
        self._children.remove(element)
        self._insert(element, before=before, after=after)
        self.ops.append(("move", element.key))

    def set_timer(self, delay: float, callback) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    def fire_timers(self) -> None:
        pending, self.timers = self.timers, []
        for timer in pending:
            timer.fire()

    def keys(self) -> list[str]:
        return [child.key for child in self._children]

    def moves(self) -> list[str]:
        return [key for op, key in self.ops if op == "move"]
