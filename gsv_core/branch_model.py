"""Branch records as reported by ``gs ll -a --json``.

One JSON object per line, e.g.::

    {"name": "feature", "current": true,
     "down": {"name": "main", "needsRestack": true},
     "ups": [{"name": "feature-docs"}],
     "push": {"ahead": 2, "behind": 1, "needsPush": true},
     "change": {"id": "#12", "url": "https://...", "status": "open"},
     "commits": [{"sha": "abcd...", "subject": "Add feature"}]}

Parsing is tolerant: a malformed line or record is skipped on its own
and never invalidates the rest of the snapshot.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

_log = logging.getLogger("gsv.model")

CHANGE_STATUSES = ("open", "closed", "merged")


@dataclass(frozen=True)
class BranchLink:
    """An up or down edge to another branch."""
    name: str
    needs_restack: bool = False


@dataclass(frozen=True)
class ChangeRef:
    """Code-review reference (pull/merge request) attached to a branch."""
    id: str
    url: Optional[str] = None
    status: Optional[str] = None


@dataclass(frozen=True)
class CommitRecord:
    sha: str
    subject: str


@dataclass(frozen=True)
class PushStatus:
    ahead: int = 0
    behind: int = 0
    needs_push: bool = False


@dataclass(frozen=True)
class BranchRecord:
    """One tracked branch in a snapshot."""
    name: str
    current: bool = False
    down: Optional[BranchLink] = None
    ups: tuple[BranchLink, ...] = ()
    change: Optional[ChangeRef] = None
    commits: Optional[tuple[CommitRecord, ...]] = None
    push: Optional[PushStatus] = None


def _parse_link(raw) -> BranchLink | None:
    if not isinstance(raw, dict):
        return None
    name = raw.get("name")
    if not isinstance(name, str) or not name:
        return None
    return BranchLink(name=name, needs_restack=raw.get("needsRestack") is True)


def _parse_change(raw) -> ChangeRef | None:
    if not isinstance(raw, dict):
        return None
    change_id = raw.get("id")
    if isinstance(change_id, int):
        change_id = str(change_id)
    if not isinstance(change_id, str) or not change_id:
        return None
    url = raw.get("url")
    status = raw.get("status")
    return ChangeRef(
        id=change_id,
        url=url if isinstance(url, str) and url else None,
        status=status if status in CHANGE_STATUSES else None,
    )


def _parse_commits(raw) -> tuple[CommitRecord, ...] | None:
    if not isinstance(raw, list):
        return None
    commits = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        sha = entry.get("sha")
        if not isinstance(sha, str) or not sha:
            continue
        subject = entry.get("subject")
        commits.append(CommitRecord(sha=sha, subject=subject if isinstance(subject, str) else ""))
    return tuple(commits)


def _parse_push(raw) -> PushStatus | None:
    if not isinstance(raw, dict):
        return None

    def _count(key: str) -> int:
        value = raw.get(key)
        return value if isinstance(value, int) and value > 0 else 0

    return PushStatus(
        ahead=_count("ahead"),
        behind=_count("behind"),
        needs_push=raw.get("needsPush") is True,
    )


def parse_branch(raw) -> BranchRecord | None:
    """Convert one decoded JSON object into a BranchRecord.

    Returns None when the object has no usable name. Optional fields with
    the wrong shape are dropped rather than rejected.
    """
    if not isinstance(raw, dict):
        return None
    name = raw.get("name")
    if not isinstance(name, str) or not name:
        return None

    ups_raw = raw.get("ups")
    ups = []
    if isinstance(ups_raw, list):
        for entry in ups_raw:
            link = _parse_link(entry)
            if link is not None:
                ups.append(link)

    return BranchRecord(
        name=name,
        current=raw.get("current") is True,
        down=_parse_link(raw.get("down")),
        ups=tuple(ups),
        change=_parse_change(raw.get("change")),
        commits=_parse_commits(raw.get("commits")),
        push=_parse_push(raw.get("push")),
    )


def parse_branches(stdout: str) -> list[BranchRecord]:
    """Parse newline-delimited JSON branch records.

    Blank lines are ignored; lines that fail to decode or do not describe
    a branch are skipped individually.
    """
    branches = []
    for lineno, line in enumerate(stdout.splitlines(), 1):
        line = line.strip()
        if not line:
            continue
        try:
            raw = json.loads(line)
        except json.JSONDecodeError as e:
            _log.debug("skipping malformed branch line %d: %s", lineno, e)
            continue
        branch = parse_branch(raw)
        if branch is None:
            _log.debug("skipping branch line %d without a name", lineno)
            continue
        branches.append(branch)
    return branches
