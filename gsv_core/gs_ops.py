"""git-spice CLI wrapper for stack operations.

Every call returns a GsResult instead of raising: the stack view treats
any failure as an opaque message to display or notify.
"""

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from gsv_core.branch_model import BranchRecord, parse_branches
from gsv_core.config import load_config
from gsv_core.paths import configure_logger, log_shell_command

_log = configure_logger("gsv.gs")

GS_INSTALL_HINT = "Install git-spice: https://abhinav.github.io/git-spice/"


@dataclass(frozen=True)
class GsResult:
    """Success-or-error outcome of a gs invocation."""
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _failure_detail(result: subprocess.CompletedProcess) -> str:
    stderr = (result.stderr or "").strip()
    stdout = (result.stdout or "").strip()
    detail = stderr or stdout or f"exit status {result.returncode}"
    # gs prefixes errors with "ERR"; keep the last line, it names the cause
    return detail.splitlines()[-1]


def run_gs(*args: str, cwd: Optional[str | Path] = None,
           timeout: Optional[float] = None) -> subprocess.CompletedProcess:
    """Run a gs command and return the completed process.

    Raises FileNotFoundError if the binary is missing and
    subprocess.TimeoutExpired on timeout; callers convert these.
    """
    config = load_config()
    cmd = [config.gs_binary, *args]
    log_shell_command(cmd, prefix="gs")
    result = subprocess.run(
        cmd,
        cwd=cwd,
        capture_output=True,
        text=True,
        timeout=timeout if timeout is not None else config.command_timeout,
    )
    if result.returncode != 0:
        log_shell_command(cmd, prefix="gs", returncode=result.returncode)
    return result


def _invoke(description: str, *args: str, repo: Path) -> GsResult:
    """Run a mutating gs command, mapping every failure to an error result."""
    try:
        result = run_gs(*args, cwd=repo)
    except FileNotFoundError:
        _log.warning("gs binary not found while trying to %s", description)
        return GsResult(error=f"git-spice (gs) not found. {GS_INSTALL_HINT}")
    except subprocess.TimeoutExpired as e:
        _log.warning("gs timed out while trying to %s", description)
        return GsResult(error=f"Timed out after {e.timeout:.0f}s trying to {description}")
    except OSError as e:
        _log.warning("gs failed to start while trying to %s: %s", description, e)
        return GsResult(error=f"Failed to {description}: {e}")
    if result.returncode != 0:
        detail = _failure_detail(result)
        _log.info("gs failed to %s: %s", description, detail)
        return GsResult(error=f"Failed to {description}: {detail}")
    _log.info("gs: %s", description)
    return GsResult(value=(result.stdout or "").strip())


def gs_available() -> bool:
    return shutil.which(load_config().gs_binary) is not None


def load_branches(repo: Path) -> GsResult:
    """Load every tracked branch (``gs ll -a --json``).

    On success ``value`` is a list of BranchRecord.
    """
    try:
        result = run_gs("ll", "-a", "--json", cwd=repo)
    except FileNotFoundError:
        return GsResult(error=f"Failed to load git-spice branches: gs not found. {GS_INSTALL_HINT}")
    except subprocess.TimeoutExpired as e:
        return GsResult(error=f"Failed to load git-spice branches: timed out after {e.timeout:.0f}s")
    except OSError as e:
        return GsResult(error=f"Failed to load git-spice branches: {e}")
    if result.returncode != 0:
        return GsResult(error=f"Failed to load git-spice branches: {_failure_detail(result)}")
    branches: list[BranchRecord] = parse_branches(result.stdout or "")
    _log.debug("loaded %d branches from %s", len(branches), repo)
    return GsResult(value=branches)


# ---------------------------------------------------------------------------
# Branch operations
# ---------------------------------------------------------------------------

def branch_checkout(repo: Path, branch: str) -> GsResult:
    return _invoke(f"check out {branch}", "branch", "checkout", branch, repo=repo)


def branch_untrack(repo: Path, branch: str) -> GsResult:
    return _invoke(f"untrack {branch}", "branch", "untrack", branch, repo=repo)


def branch_fold(repo: Path, branch: str) -> GsResult:
    return _invoke(f"fold {branch}", "branch", "fold", "--branch", branch, repo=repo)


def branch_squash(repo: Path, branch: str) -> GsResult:
    return _invoke(f"squash {branch}", "branch", "squash", "--branch", branch, "--no-edit", repo=repo)


def branch_edit(repo: Path, branch: str) -> GsResult:
    """Start an interactive rebase of the current branch.

    gs only edits the checked-out branch; the caller is expected to have
    handed the terminal over (the TUI suspends itself first).
    """
    return _invoke(f"edit {branch}", "branch", "edit", repo=repo)


def branch_rename(repo: Path, branch: str, new_name: str) -> GsResult:
    return _invoke(f"rename {branch} to {new_name}", "branch", "rename", branch, new_name, repo=repo)


def branch_restack(repo: Path, branch: str) -> GsResult:
    return _invoke(f"restack {branch}", "branch", "restack", "--branch", branch, repo=repo)


def branch_submit(repo: Path, branch: str) -> GsResult:
    return _invoke(f"submit {branch}", "branch", "submit", "--branch", branch, "--fill", repo=repo)


def branch_create(repo: Path, name: str) -> GsResult:
    return _invoke(f"create {name}", "branch", "create", name, "--no-commit", repo=repo)


def branch_split(repo: Path, branch: str, sha: str, new_name: str) -> GsResult:
    """Split branch at sha; commits up to sha move to new_name."""
    return _invoke(f"split {branch} at {sha[:8]}", "branch", "split",
                   "--branch", branch, "--at", f"{sha}:{new_name}", repo=repo)


def branch_onto(repo: Path, branch: str, onto: str) -> GsResult:
    """Move a single branch onto a new base, leaving its upstack behind."""
    return _invoke(f"move {branch} onto {onto}", "branch", "onto", "--branch", branch, onto, repo=repo)


def commit_fixup(repo: Path, sha: str) -> GsResult:
    return _invoke(f"fixup {sha[:8]}", "commit", "fixup", sha, repo=repo)


def repo_sync(repo: Path) -> GsResult:
    return _invoke("sync repository", "repo", "sync", repo=repo)


# Actions that take only a branch name; each maps to branch_<action>()
BRANCH_ACTIONS = ("checkout", "untrack", "fold", "squash", "edit", "restack", "submit")
