"""Centralized path management for gsv.

All gsv-related directories live under ~/.gsv/ (or $GSV_HOME):
- ~/.gsv/debug/         - Per-repo log files
- ~/.gsv/sessions/      - Per-repo config (debug flag)
- ~/.gsv/settings/      - Global boolean settings (experimental-fixup, ...)
- ~/.gsv/config.yaml    - Tunables (see gsv_core.config)

Session tags are derived from the git repo (directory name + hash).
"""

import hashlib
import logging
import os
import shlex
from pathlib import Path

# Cache for session tags to avoid repeated filesystem walks
_session_tag_cache: dict[str, str | None] = {}


def gsv_home() -> Path:
    """Return the gsv home directory (~/.gsv/ unless GSV_HOME is set)."""
    override = os.environ.get("GSV_HOME")
    d = Path(override) if override else Path.home() / ".gsv"
    d.mkdir(parents=True, exist_ok=True)
    return d


def debug_dir() -> Path:
    """Return the debug/logs directory (~/.gsv/debug/)."""
    d = gsv_home() / "debug"
    d.mkdir(parents=True, exist_ok=True)
    return d


def sessions_dir() -> Path:
    """Return the sessions directory (~/.gsv/sessions/).

    Contains per-repo configuration files:
    - {session-tag}/debug  - If present, enable debug logging
    """
    d = gsv_home() / "sessions"
    d.mkdir(parents=True, exist_ok=True)
    return d


def get_session_tag(start_path: Path | None = None) -> str | None:
    """Generate a session tag for the git repository containing start_path.

    Format: {repo_name}-{hash} where hash is the MD5 of the git root
    path (8 chars). Returns None outside a git repository.
    """
    from gsv_core.git_ops import get_git_root

    cache_key = str(start_path or Path.cwd())
    if cache_key in _session_tag_cache:
        return _session_tag_cache[cache_key]

    git_root = get_git_root(start_path)
    if not git_root:
        _session_tag_cache[cache_key] = None
        return None

    path_hash = hashlib.md5(str(git_root).encode()).hexdigest()[:8]
    tag = f"{git_root.name}-{path_hash}"
    _session_tag_cache[cache_key] = tag
    return tag


def session_dir(session_tag: str | None = None) -> Path | None:
    """Get the directory for a specific session's config files.

    If session_tag is None, derives it from the current git repo.
    Returns None if no session can be determined.
    """
    tag = session_tag or get_session_tag()
    if not tag:
        return None
    d = sessions_dir() / tag
    d.mkdir(parents=True, exist_ok=True)
    return d


def debug_enabled(session_tag: str | None = None) -> bool:
    """Check if debug mode is enabled for the current session."""
    sd = session_dir(session_tag)
    if not sd:
        return False
    return (sd / "debug").exists()


def set_debug(session_tag: str, enabled: bool = True) -> None:
    """Enable or disable debug mode for a session."""
    sd = session_dir(session_tag)
    if sd:
        debug_file = sd / "debug"
        if enabled:
            debug_file.touch()
        elif debug_file.exists():
            debug_file.unlink()


def get_global_setting(name: str) -> bool:
    """Check if a global gsv setting is enabled.

    Settings are stored as files in ~/.gsv/settings/.
    A setting is enabled if its file exists and contains 'true'.
    """
    f = gsv_home() / "settings" / name
    if not f.exists():
        return False
    try:
        return f.read_text().strip() == "true"
    except OSError:
        return False


def set_global_setting(name: str, enabled: bool) -> None:
    """Enable or disable a global gsv setting."""
    d = gsv_home() / "settings"
    d.mkdir(parents=True, exist_ok=True)
    f = d / name
    if enabled:
        f.write_text("true\n")
    elif f.exists():
        f.unlink()


def command_log_file(session_tag: str | None = None) -> Path:
    """Get the path to the log file for a session.

    Located at ~/.gsv/debug/{session-tag}.log, or default.log outside
    a git repository.
    """
    tag = session_tag or get_session_tag() or "default"
    return debug_dir() / f"{tag}.log"


def configure_logger(name: str, max_bytes: int = 10_000_000) -> logging.Logger:
    """Configure a logger that always writes to file with rotation.

    Args:
        name: Logger name (e.g., "gsv.tui")
        max_bytes: Maximum log file size before rotation (default 10MB)

    Returns:
        Configured logger instance
    """
    from logging.handlers import RotatingFileHandler

    logger = logging.getLogger(name)

    # Avoid adding duplicate handlers
    if logger.handlers:
        return logger

    handler = RotatingFileHandler(
        command_log_file(),
        maxBytes=max_bytes,
        backupCount=1,
    )
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(message)s", datefmt="%H:%M:%S"
    ))
    logger.addHandler(handler)
    logger.propagate = False

    if debug_enabled():
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    return logger


def log_shell_command(cmd: list[str] | str, prefix: str = "shell", returncode: int | None = None) -> None:
    """Log a shell command to the central command log.

    Every gs/git invocation is logged here. The TUI and CLI share the
    same log file.

    Args:
        cmd: Command list or string to log
        prefix: Prefix for the log entry (e.g., "gs", "git")
        returncode: If provided, logs as completion with return code
    """
    log_file = command_log_file()
    cmd_str = shlex.join(cmd) if isinstance(cmd, list) else cmd

    try:
        from datetime import datetime
        timestamp = datetime.now().strftime("%H:%M:%S")

        if returncode is not None:
            if returncode == 0:
                entry = f"{timestamp} INFO  {prefix} done: {cmd_str}\n"
            else:
                entry = f"{timestamp} WARN  {prefix} failed (rc={returncode}): {cmd_str}\n"
        else:
            entry = f"{timestamp} INFO  {prefix}: {cmd_str}\n"

        with open(log_file, "a") as f:
            f.write(entry)
    except OSError:
        pass  # Silently fail if we can't write to log
