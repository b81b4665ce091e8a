"""Stack resolution, view-model projection, and the pending-reorder overlay.

Everything here is pure: inputs are never mutated and no function raises
on odd input (no current branch, dangling links, cycles). Orders are
bottom-first (trunk nearest); the display layer reverses them so the
branch furthest from trunk renders on top.
"""

from collections import deque
from dataclasses import dataclass, asdict
from typing import Optional, Sequence, TypeVar

from gsv_core.branch_model import BranchRecord, ChangeRef, PushStatus

SHORT_SHA_LEN = 8


@dataclass(frozen=True)
class CommitViewModel:
    sha: str
    short_sha: str
    subject: str


@dataclass(frozen=True)
class BranchViewModel:
    name: str
    current: bool
    restack: bool
    change: Optional[ChangeRef] = None
    commits: Optional[tuple[CommitViewModel, ...]] = None
    push: Optional[PushStatus] = None


@dataclass(frozen=True)
class PendingReorder:
    """A drag-and-drop move awaiting confirmation.

    Indices are in display coordinates: 0 is the topmost rendered card.
    """
    branch_name: str
    old_index: int
    new_index: int


@dataclass(frozen=True)
class DisplayState:
    branches: tuple[BranchViewModel, ...] = ()
    error: Optional[str] = None
    pending_reorder: Optional[PendingReorder] = None

    def to_dict(self) -> dict:
        """JSON-friendly form (used by ``gsv state --json``)."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

def _focus_set(current: BranchRecord, branch_map: dict[str, BranchRecord]) -> list[str]:
    """Names reachable from current via down links, then via ups (BFS).

    Returned in discovery order; the caller only relies on membership
    except in the rootless fallback.
    """
    seen: dict[str, None] = {}
    node: BranchRecord | None = current
    while node is not None:
        if node.name in seen:
            break
        seen[node.name] = None
        if node.down is None:
            break
        node = branch_map.get(node.down.name)

    queue = deque([current.name])
    while queue:
        branch = branch_map.get(queue.popleft())
        if branch is None:
            continue
        for link in branch.ups:
            child = branch_map.get(link.name)
            if child is None or child.name in seen:
                continue
            seen[child.name] = None
            queue.append(child.name)
    return list(seen)


def _order_stack(members: list[BranchRecord]) -> list[BranchRecord]:
    """Depth-first, bottom-first order over the focus set.

    A node's children are its ``ups`` plus every member whose ``down``
    names it, either link alone being enough. Members left unvisited by
    the root walk (cycles) follow in name order.
    """
    in_focus = {b.name: b for b in members}
    children: dict[str, set[str]] = {name: set() for name in in_focus}
    for branch in members:
        for link in branch.ups:
            if link.name in in_focus and link.name != branch.name:
                children[branch.name].add(link.name)
        if branch.down is not None and branch.down.name in in_focus and branch.down.name != branch.name:
            children[branch.down.name].add(branch.name)

    ordered: list[BranchRecord] = []
    visited: set[str] = set()

    def traverse(start: str) -> None:
        stack = [start]
        while stack:
            name = stack.pop()
            if name in visited:
                continue
            visited.add(name)
            ordered.append(in_focus[name])
            stack.extend(sorted(children[name] - visited, reverse=True))

    roots = sorted(
        b.name for b in members if b.down is None or b.down.name not in in_focus
    )
    for name in roots or [b.name for b in members]:
        traverse(name)
    for name in sorted(in_focus):
        traverse(name)
    return ordered


def resolve(records: Sequence[BranchRecord]) -> list[BranchRecord]:
    """Return the focused stack around the current branch, bottom-first.

    Duplicate names: the last record wins. No current branch: empty list.
    """
    branch_map = {b.name: b for b in records}
    current = next((b for b in records if b.current), None)
    if current is None:
        return []
    # The lookup may hold a later duplicate of the current record
    current = branch_map.get(current.name, current)
    members = [branch_map[name] for name in _focus_set(current, branch_map) if name in branch_map]
    return _order_stack(members)


# ---------------------------------------------------------------------------
# Overlay
# ---------------------------------------------------------------------------

T = TypeVar("T")


def stack_insert_index(new_index: int, length: int) -> int:
    """Map a display (top-first) insert index to a bottom-first one.

    ``length`` is the list length after the moved entry was removed.
    """
    return max(0, min(length - new_index, length))


def apply_pending_reorder(ordered: Sequence[T], pending: PendingReorder) -> list[T]:
    """Preview a pending move on a bottom-first list.

    Entries need a ``name`` attribute. Unknown branch names leave the
    order unchanged.
    """
    items = list(ordered)
    index = next((i for i, item in enumerate(items) if item.name == pending.branch_name), None)
    if index is None:
        return items
    moved = items.pop(index)
    items.insert(stack_insert_index(pending.new_index, len(items)), moved)
    return items


# ---------------------------------------------------------------------------
# Projector
# ---------------------------------------------------------------------------

def to_view_model(branch: BranchRecord) -> BranchViewModel:
    restack = (branch.down is not None and branch.down.needs_restack) or any(
        link.needs_restack for link in branch.ups
    )
    commits = None
    if branch.commits:
        commits = tuple(
            CommitViewModel(sha=c.sha, short_sha=c.sha[:SHORT_SHA_LEN], subject=c.subject)
            for c in branch.commits
        )
    return BranchViewModel(
        name=branch.name,
        current=branch.current,
        restack=restack,
        change=branch.change,
        commits=commits,
        push=branch.push,
    )


def project(ordered: Sequence[BranchRecord], error: Optional[str] = None,
            pending_reorder: Optional[PendingReorder] = None) -> DisplayState:
    """Build the immutable display state for an already-resolved stack."""
    if pending_reorder is not None:
        ordered = apply_pending_reorder(ordered, pending_reorder)
    return DisplayState(
        branches=tuple(to_view_model(b) for b in ordered),
        error=error,
        pending_reorder=pending_reorder,
    )


def build_display_state(records: Sequence[BranchRecord], error: Optional[str] = None,
                        pending_reorder: Optional[PendingReorder] = None) -> DisplayState:
    return project(resolve(records), error, pending_reorder)


def render_static_stack(state: DisplayState) -> str:
    """Render a plain-text view of the stack, top of stack first."""
    if not state.branches:
        return state.error or "No branches in the current stack."

    lines = []
    if state.error:
        lines.append(f"error: {state.error}")
    for branch in reversed(state.branches):
        marker = "*" if branch.current else " "
        tags = []
        if branch.restack:
            tags.append("needs restack")
        if branch.change:
            status = f" {branch.change.status}" if branch.change.status else ""
            tags.append(f"{branch.change.id}{status}")
        if branch.push and branch.push.needs_push:
            tags.append("needs push")
        tag_str = f"  ({', '.join(tags)})" if tags else ""
        lines.append(f"{marker} {branch.name}{tag_str}")
        for commit in branch.commits or ():
            lines.append(f"    {commit.short_sha} {commit.subject}")
    return "\n".join(lines)
