"""Uninstall workflow: unload, delete artifacts, refresh module index."""

from __future__ import annotations

from aicdrv.driver.manager import DriverManager
from aicdrv.workflow.models import Step, Workflow


def build_uninstall_workflow(mgr: DriverManager) -> Workflow:
    """Assemble the ordered uninstall steps for *mgr*.

    Only the unload step can abort, when the module stays loaded.
    """
    cfg = mgr.config
    steps = (
        Step(
            name="unload",
            title="Unloading driver module",
            activity=f"Removing {cfg.module_name} module... ",
            action=mgr.unload_module,
            fatal=True,
            failure_message="Failed to unload module. Check if it's in use (dmesg).",
            weight=2,
        ),
        Step(
            name="firmware",
            title="Removing firmware files",
            activity=f"Deleting {cfg.firmware_dir / cfg.firmware_prefix}*... ",
            action=mgr.purge_firmware,
            done_message="Firmware files removed.",
            weight=2,
        ),
        Step(
            name="udev-rule",
            title="Removing udev rules",
            activity=f"Deleting {cfg.udev_rule_name}... ",
            action=mgr.remove_udev_rule,
            done_message="Udev rules removed.",
        ),
        Step(
            name="module-file",
            title="Removing driver files",
            activity="Cleaning up driver files... ",
            action=mgr.remove_module_file,
            done_message="Driver files removed.",
            weight=2,
        ),
        Step(
            name="cleanup",
            title="Cleaning up temporary files",
            activity=f"Removing {mgr.checkout_dir}... ",
            action=mgr.remove_checkout,
            done_message="Temporary files removed.",
        ),
    )
    return Workflow(
        name="uninstall",
        steps=steps,
        start_message="Starting deinstallation...",
        finish_messages=("Deinstallation complete! Reboot recommended to ensure cleanup.",),
        finish_banner="=== Deinstallation Finished ===",
    )
