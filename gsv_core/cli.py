"""Click CLI for gsv.

``gsv`` with no subcommand opens the TUI for the repository in the current
directory (or ``-C PATH`` / ``$GSV_REPO``). The other commands print the
same focused stack without a terminal UI.
"""

import json
import sys
from pathlib import Path

import click

from gsv_core import gs_ops, paths
from gsv_core.git_ops import get_git_root
from gsv_core.paths import configure_logger
from gsv_core.session import StackSession
from gsv_core.stack import render_static_stack

_log = configure_logger("gsv.cli")

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

BOOLEAN_SETTINGS = {"experimental-fixup"}


class HelpGroup(click.Group):
    """Click Group that treats 'help' as an alias for --help.

    Handles ``gsv help`` as well as ``gsv show help``.
    """

    def resolve_command(self, ctx, args):
        if args and args[0] == "help":
            if super().get_command(ctx, "help") is not None:
                return super().resolve_command(ctx, args)
            args = ["--help"] + args[1:]
        cmd_name, cmd, remaining = super().resolve_command(ctx, args)
        if (remaining and remaining[0] == "help"
                and cmd is not None and not isinstance(cmd, click.Group)):
            remaining = ["--help"] + remaining[1:]
        return cmd_name, cmd, remaining


def _resolve_repo(repo_dir: str | None) -> Path | None:
    start = Path(repo_dir).resolve() if repo_dir else None
    return get_git_root(start)


def _load_session(ctx) -> StackSession:
    repo = ctx.obj["repo"]
    if repo is None:
        click.echo("Not inside a git repository (use -C PATH or set GSV_REPO)", err=True)
        raise SystemExit(1)
    session = StackSession(repo)
    session.refresh()
    return session


@click.group(invoke_without_command=True, cls=HelpGroup, context_settings=CONTEXT_SETTINGS)
@click.option("-C", "--repo", "repo_dir", default=None, envvar="GSV_REPO",
              help="Path to the git repository (or set GSV_REPO env var)")
@click.pass_context
def cli(ctx, repo_dir: str | None):
    """gsv: view and rearrange git-spice stacks."""
    ctx.ensure_object(dict)
    ctx.obj["repo"] = _resolve_repo(repo_dir)
    if ctx.invoked_subcommand is None:
        ctx.invoke(tui_cmd)


@cli.command("tui")
@click.pass_context
def tui_cmd(ctx):
    """Open the interactive stack view."""
    from gsv_core.tui.app import StackViewApp

    repo = ctx.obj["repo"]
    if repo is not None and not gs_ops.gs_available():
        click.echo(f"warning: gs not found on PATH. {gs_ops.GS_INSTALL_HINT}", err=True)
    _log.info("launching TUI for %s", repo)
    StackViewApp(repo).run()


@cli.command("show")
@click.pass_context
def show_cmd(ctx):
    """Print the stack around the current branch, top of stack first."""
    session = _load_session(ctx)
    state = session.display_state()
    click.echo(render_static_stack(state))
    if state.error:
        raise SystemExit(1)


@cli.command("state")
@click.option("--json", "as_json", is_flag=True, default=False,
              help="Print the display state as JSON")
@click.pass_context
def state_cmd(ctx, as_json: bool):
    """Print the display state the TUI would render."""
    session = _load_session(ctx)
    state = session.display_state()
    if as_json:
        click.echo(json.dumps(state.to_dict(), indent=2))
    else:
        for branch in state.branches:
            flags = []
            if branch.current:
                flags.append("current")
            if branch.restack:
                flags.append("restack")
            click.echo(f"{branch.name}" + (f" [{', '.join(flags)}]" if flags else ""))
        if state.error:
            click.echo(f"error: {state.error}", err=True)
    if state.error:
        raise SystemExit(1)


@cli.command("debug")
@click.argument("mode", type=click.Choice(["on", "off"]))
@click.pass_context
def debug_cmd(ctx, mode: str):
    """Turn debug logging on or off for this repository."""
    repo = ctx.obj["repo"]
    tag = paths.get_session_tag(repo)
    if tag is None:
        click.echo("Not inside a git repository", err=True)
        raise SystemExit(1)
    paths.set_debug(tag, mode == "on")
    click.echo(f"debug logging {mode} ({paths.command_log_file(tag)})")


@cli.command("set")
@click.argument("setting")
@click.argument("value")
def set_cmd(setting, value):
    """Configure a global gsv setting.

    Boolean settings (on/off):

      experimental-fixup   Offer "Fixup" in the commit context menu
    """
    if setting not in BOOLEAN_SETTINGS:
        click.echo(f"Unknown setting: {setting}", err=True)
        click.echo(f"Available: {', '.join(sorted(BOOLEAN_SETTINGS))}", err=True)
        raise SystemExit(1)
    if value not in ("on", "off"):
        click.echo(f"Setting '{setting}' takes 'on' or 'off'", err=True)
        raise SystemExit(1)
    paths.set_global_setting(setting, value == "on")
    click.echo(f"{setting} = {value}")


def main():
    try:
        cli()
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
