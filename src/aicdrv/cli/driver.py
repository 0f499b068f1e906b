"""CLI subcommands for driver install, removal, and inspection."""

from __future__ import annotations

import json

import click

from aicdrv import system
from aicdrv.config import InstallerConfig, load_config
from aicdrv.console import Console, Palette
from aicdrv.exceptions import PrivilegeError

_SUDO_HINT = "Please run this tool with sudo: sudo aicdrv"


def make_console(ctx: click.Context) -> Console:
    """Create a Console honoring --no-color."""
    return Console(Palette(enabled=not ctx.obj.get("no_color", False)))


def require_root() -> None:
    """Raise PrivilegeError unless running as root."""
    if not system.is_root():
        raise PrivilegeError(_SUDO_HINT)


def get_config(ctx: click.Context, console: Console) -> InstallerConfig:
    """Return the configuration from ctx.obj, loading it on first use.

    Raises:
        ConfigError: If an environment override is invalid.
    """
    config = ctx.obj.get("config")
    if config is None:
        config = load_config()
        ctx.obj["config"] = config
    console.pace = config.progress_pace_s
    return config


def _get_manager(config: InstallerConfig):
    from aicdrv.driver.manager import DriverManager

    return DriverManager(config)


def run_workflow(ctx: click.Context, name: str, console: Console) -> int:
    """Run the install or uninstall workflow and return its exit code."""
    from aicdrv.workflow.install import build_install_workflow
    from aicdrv.workflow.runner import WorkflowRunner
    from aicdrv.workflow.uninstall import build_uninstall_workflow

    config = get_config(ctx, console)
    mgr = _get_manager(config)
    builders = {
        "install": build_install_workflow,
        "uninstall": build_uninstall_workflow,
    }
    report = WorkflowRunner(console).run(builders[name](mgr))
    return report.exit_code


@click.command()
@click.pass_context
def install(ctx: click.Context) -> None:
    """Build, install, and load the driver (requires root)."""
    console = make_console(ctx)
    require_root()
    ctx.exit(run_workflow(ctx, "install", console))


@click.command()
@click.pass_context
def uninstall(ctx: click.Context) -> None:
    """Unload the driver and delete its files (requires root)."""
    console = make_console(ctx)
    require_root()
    ctx.exit(run_workflow(ctx, "uninstall", console))


@click.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show current driver status."""
    console = make_console(ctx)
    mgr = _get_manager(get_config(ctx, console))
    st = mgr.get_status()

    if ctx.obj.get("json_output"):
        click.echo(json.dumps({
            "module_loaded": st.is_loaded,
            "module_name": st.module_name,
            "kernel_release": st.kernel_release,
            "module_installed": st.module_installed,
            "module_path": st.module_path,
            "firmware_entries": list(st.firmware_entries),
            "udev_rules": list(st.udev_rules),
            "checkout_present": st.checkout_present,
        }, indent=2))
        return

    click.echo("AIC8800D80 Driver Status")
    click.echo("=" * 50)
    click.echo(f"  Kernel:          {st.kernel_release}")
    click.echo(f"  Module Status:   {'Loaded' if st.is_loaded else 'Not loaded'} ({st.module_name})")
    click.echo(f"  Module File:     {st.module_path if st.module_installed else 'Not installed'}")
    if st.firmware_entries:
        click.echo("  Firmware:")
        for entry in st.firmware_entries:
            click.echo(f"    {entry}")
    else:
        click.echo("  Firmware:        None")
    click.echo(f"  Udev Rule:       {', '.join(st.udev_rules) or 'None'}")
    click.echo(f"  Temp Checkout:   {'Present' if st.checkout_present else 'None'}")


@click.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Check prerequisites for driver installation."""
    console = make_console(ctx)
    mgr = _get_manager(get_config(ctx, console))
    report = mgr.check_prerequisites()

    click.echo("AIC8800D80 Driver Prerequisites")
    click.echo("=" * 50)
    for prereq in report.items:
        icon = "OK" if prereq.satisfied else "MISSING"
        click.echo(f"  [{icon:>7}]  {prereq.name}: {prereq.description}")
        if prereq.detail:
            click.echo(f"             {prereq.detail}")

    click.echo()
    if report.all_satisfied:
        click.echo("All prerequisites satisfied. Ready to install.")
    else:
        click.echo("Some prerequisites are missing. The install step will try to add packages.")
        ctx.exit(1)
