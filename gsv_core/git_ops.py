"""Plain git helpers: repository discovery and commit inspection."""

import subprocess
from pathlib import Path
from typing import Optional

from gsv_core.paths import log_shell_command


def get_git_root(start_path: Path | None = None) -> Path | None:
    """Find the git repository root from the given path or cwd.

    Walks up the directory tree looking for .git (directory or file,
    so linked worktrees are found too).
    """
    path = start_path or Path.cwd()
    path = path.resolve()

    while path != path.parent:
        if (path / ".git").exists():
            return path
        path = path.parent

    # Check root directory too
    if (path / ".git").exists():
        return path
    return None


def run_git(*args: str, cwd: Optional[str | Path] = None, check: bool = True) -> subprocess.CompletedProcess:
    """Run a git command and return result.

    Logs to the gsv command log.
    """
    cmd = ["git", *args]
    log_shell_command(cmd, prefix="git")
    result = subprocess.run(
        cmd,
        cwd=cwd,
        capture_output=True,
        text=True,
        check=check,
    )
    if result.returncode != 0:
        log_shell_command(cmd, prefix="git", returncode=result.returncode)
    return result


def git_common_dir(repo: Path) -> Path | None:
    """Return the shared .git directory for repo.

    git-spice keeps its state under refs/spice in the common dir, which
    differs from ``repo/.git`` inside linked worktrees.
    """
    result = run_git("rev-parse", "--git-common-dir", cwd=repo, check=False)
    if result.returncode != 0 or not result.stdout.strip():
        dot_git = repo / ".git"
        return dot_git if dot_git.is_dir() else None
    path = Path(result.stdout.strip())
    if not path.is_absolute():
        path = repo / path
    return path.resolve()


def show_commit_cmd(sha: str, patch: bool = True) -> list[str]:
    """Command that displays a commit in the user's pager.

    With patch=False only the message and file summary are shown.
    """
    if patch:
        return ["git", "show", "--stat", "--patch", sha]
    return ["git", "show", "--stat", sha]
