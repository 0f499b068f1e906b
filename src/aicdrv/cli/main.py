"""aicdrv CLI - interactive menu plus direct install/uninstall/status commands."""

from __future__ import annotations

import click

from aicdrv.console import Palette, format_line
from aicdrv.exceptions import AicDrvError
from aicdrv.utils.logging import get_logger, setup_logging
from aicdrv.workflow.models import MessageLevel

logger = get_logger(__name__)


class AicDrvGroup(click.Group):
    """Click group that reports any AicDrvError as ``[ERROR] <message>``."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except AicDrvError as exc:
            logger.info("command_failed", error=type(exc).__name__, exit_code=exc.exit_code)
            palette = Palette(enabled=not (ctx.obj or {}).get("no_color", False))
            click.echo(format_line(MessageLevel.ERROR, exc.message, palette))
            ctx.exit(exc.exit_code)


@click.group(cls=AicDrvGroup, invoke_without_command=True)
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--no-color", is_flag=True, help="Disable colored console output")
@click.pass_context
def cli(ctx: click.Context, debug: bool, json_output: bool, no_color: bool) -> None:
    """AIC8800D80 WiFi driver installer.

    Run without a command to get the interactive menu.
    """
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["json_output"] = json_output
    ctx.obj["no_color"] = no_color
    setup_logging(level="DEBUG" if debug else "WARNING", json_output=json_output)

    if ctx.invoked_subcommand is None:
        _run_menu(ctx)


def _run_menu(ctx: click.Context) -> None:
    """Privilege check, banner, one choice, one workflow."""
    from aicdrv.cli.driver import get_config, make_console, require_root, run_workflow
    from aicdrv.menu import PROMPT, TITLE, MenuChoice, menu_lines, parse_choice

    console = make_console(ctx)
    require_root()
    config = get_config(ctx, console)

    console.banner(TITLE)
    for line in menu_lines(config.repo_url):
        console.echo(line)

    text = click.prompt(PROMPT, default="", show_default=False, prompt_suffix=": ")
    console.echo()

    choice = parse_choice(text)
    if choice is MenuChoice.EXIT:
        console.warning("Exiting without changes.")
        ctx.exit(0)
        return

    workflow = "install" if choice is MenuChoice.INSTALL else "uninstall"
    ctx.exit(run_workflow(ctx, workflow, console))


# Register subcommands
from aicdrv.cli.driver import check, install, status, uninstall  # noqa: E402

cli.add_command(install)
cli.add_command(uninstall)
cli.add_command(status)
cli.add_command(check)


if __name__ == "__main__":
    cli()
