"""Stack view session: the state behind one panel.

Holds the latest branch snapshot, the last load error, and at most one
pending reorder. Every mutating operation is followed by a full refresh,
whatever its outcome. Methods block on gs; the TUI runs them in an
executor, one at a time.
"""

from pathlib import Path
from typing import Callable, Optional

from gsv_core import gs_ops
from gsv_core.branch_model import BranchRecord
from gsv_core.gs_ops import GsResult
from gsv_core.paths import configure_logger
from gsv_core.stack import (
    DisplayState,
    PendingReorder,
    apply_pending_reorder,
    build_display_state,
    resolve,
)

_log = configure_logger("gsv.session")

NO_REPO_MESSAGE = "Open a git repository to view git-spice stacks."


class StackSession:
    """Owns branches, last_error and pending_reorder for one repository."""

    def __init__(self, repo: Optional[Path], gs=gs_ops):
        self.repo = repo
        self._gs = gs
        self.branches: list[BranchRecord] = []
        self.last_error: Optional[str] = None
        self.pending_reorder: Optional[PendingReorder] = None

    def display_state(self) -> DisplayState:
        return build_display_state(self.branches, self.last_error, self.pending_reorder)

    # --- Snapshot ---

    def refresh(self) -> DisplayState:
        """Replace the branch snapshot from gs.

        Any pending reorder is dropped: it was expressed against the old
        snapshot.
        """
        if self.repo is None:
            self.branches = []
            self.last_error = NO_REPO_MESSAGE
        else:
            result = self._gs.load_branches(self.repo)
            if result.ok:
                self.branches = list(result.value)
                self.last_error = None
            else:
                _log.warning("refresh failed: %s", result.error)
                self.branches = []
                self.last_error = result.error
        self.pending_reorder = None
        return self.display_state()

    def display_order(self) -> list[str]:
        """Branch names as rendered, top of stack first."""
        return [b.name for b in reversed(resolve(self.branches))]

    # --- Pending reorder ---

    def begin_reorder(self, old_index: int, new_index: int, branch_name: str) -> DisplayState:
        """Record a drag move. A second drag replaces the first."""
        if old_index < 0 or new_index < 0 or old_index == new_index:
            _log.debug("ignoring reorder %s %d->%d", branch_name, old_index, new_index)
            return self.display_state()
        if self.pending_reorder is not None:
            _log.info("replacing pending reorder of %s", self.pending_reorder.branch_name)
        self.pending_reorder = PendingReorder(branch_name, old_index, new_index)
        _log.info("pending reorder: %s %d->%d", branch_name, old_index, new_index)
        return self.display_state()

    def begin_drop(self, source: str, target: str) -> DisplayState:
        """Turn a card-onto-card drop into a pending reorder."""
        order = self.display_order()
        if source == target or source not in order or target not in order:
            _log.debug("ignoring drop %s onto %s", source, target)
            return self.display_state()
        return self.begin_reorder(order.index(source), order.index(target), source)

    def reorder_base(self, pending: PendingReorder) -> Optional[str]:
        """The branch the moved branch would sit on after the move."""
        ordered = apply_pending_reorder(resolve(self.branches), pending)
        names = [b.name for b in ordered]
        if pending.branch_name not in names:
            return None
        index = names.index(pending.branch_name)
        return names[index - 1] if index > 0 else None

    def confirm_reorder(self, branch_name: str) -> Optional[GsResult]:
        """Apply the pending move with gs.

        Returns None when there is no matching pending move. On failure
        the pending move is restored after the refresh so the user can
        retry without dragging again.
        """
        pending = self.pending_reorder
        if pending is None or pending.branch_name != branch_name:
            return None
        self.pending_reorder = None

        onto = self.reorder_base(pending)
        if self.repo is None:
            result = GsResult(error=NO_REPO_MESSAGE)
        elif onto is None:
            result = GsResult(error=f"Cannot move {branch_name} below the bottom of the stack")
        else:
            result = self._gs.branch_onto(self.repo, branch_name, onto)

        self.refresh()
        if not result.ok:
            _log.info("reorder of %s failed, keeping it pending: %s", branch_name, result.error)
            self.pending_reorder = pending
        return result

    def cancel_reorder(self, branch_name: str) -> bool:
        pending = self.pending_reorder
        if pending is None or pending.branch_name != branch_name:
            return False
        _log.info("cancelled reorder of %s", branch_name)
        self.pending_reorder = None
        self.refresh()
        return True

    # --- Mutations ---

    def _mutate(self, op: Callable[..., GsResult], *args: str) -> GsResult:
        if self.repo is None:
            result = GsResult(error=NO_REPO_MESSAGE)
        else:
            result = op(self.repo, *args)
        self.refresh()
        return result

    def run_action(self, action: str, branch_name: str) -> GsResult:
        """Run a single-branch action (checkout, restack, submit, ...)."""
        if action not in gs_ops.BRANCH_ACTIONS:
            return GsResult(error=f"Unknown branch action: {action}")
        return self._mutate(getattr(self._gs, f"branch_{action}"), branch_name)

    def rename_branch(self, branch_name: str, new_name: str) -> GsResult:
        new_name = new_name.strip()
        if not new_name or new_name == branch_name:
            return GsResult(error="Enter a new branch name")
        return self._mutate(self._gs.branch_rename, branch_name, new_name)

    def split_branch(self, branch_name: str, sha: str, new_name: str) -> GsResult:
        new_name = new_name.strip()
        if not new_name:
            return GsResult(error="Enter a name for the split-off branch")
        return self._mutate(self._gs.branch_split, branch_name, sha, new_name)

    def create_branch(self, name: str) -> GsResult:
        name = name.strip()
        if not name:
            return GsResult(error="Enter a branch name")
        return self._mutate(self._gs.branch_create, name)

    def fixup_commit(self, sha: str) -> GsResult:
        return self._mutate(self._gs.commit_fixup, sha)

    def sync(self) -> GsResult:
        return self._mutate(self._gs.repo_sync)
