"""Install workflow: prerequisites through verification and cleanup."""

from __future__ import annotations

from aicdrv.driver.manager import DriverManager
from aicdrv.workflow.models import Step, Workflow


def build_install_workflow(mgr: DriverManager) -> Workflow:
    """Assemble the ordered install steps for *mgr*.

    Fatal steps: prerequisites, clone, compile. The udev and firmware copies
    report completion whether or not the copy succeeded.
    """
    cfg = mgr.config
    steps = (
        Step(
            name="prerequisites",
            title="Installing prerequisites",
            activity=(
                f"Installing {', '.join(cfg.prerequisite_packages)} "
                f"and {mgr.headers_package}... "
            ),
            action=mgr.install_prerequisites,
            fatal=True,
            done_message="Prerequisites installed.",
            failure_message="Failed to install prerequisites. Check your package manager.",
            weight=12,
        ),
        Step(
            name="clone",
            title="Cloning repository",
            activity=f"Cloning {cfg.repo_url}... ",
            action=mgr.fetch_source,
            fatal=True,
            done_message="Repository cloned.",
            failure_message="Failed to clone repository. Check internet connection.",
            weight=5,
        ),
        Step(
            name="old-firmware",
            title="Cleaning up old firmware",
            activity=f"Removing old {cfg.firmware_prefix} entries from {cfg.firmware_dir}... ",
            action=mgr.remove_firmware,
            done_message="Old firmware cleaned.",
        ),
        Step(
            name="udev-rule",
            title="Installing udev rules",
            activity=f"Copying {cfg.udev_rule_name}... ",
            action=mgr.install_udev_rule,
            done_message="Udev rules installed.",
        ),
        Step(
            name="firmware",
            title="Installing firmware",
            activity="Copying firmware files... ",
            action=mgr.install_firmware,
            done_message="Firmware installed.",
            weight=2,
        ),
        Step(
            name="compile",
            title="Compiling driver",
            activity="Running make clean and make... ",
            action=mgr.build_module,
            fatal=True,
            done_message="Driver compiled.",
            failure_message="Compilation failed! Check kernel compatibility.",
            weight=17,
        ),
        Step(
            name="load",
            title="Installing and loading driver module",
            activity=f"Running make install and loading {cfg.module_name}... ",
            action=mgr.install_and_load_module,
            weight=7,
        ),
        Step(
            name="verify",
            title="Verifying installation",
            action=mgr.verify_installation,
            done_message=(
                "Installation complete! Reboot recommended. Plug in your WiFi adapter "
                "and check 'iwconfig' or Network Manager."
            ),
            weight=0,
        ),
        Step(
            name="cleanup",
            title="Cleaning up temporary files",
            action=mgr.remove_checkout,
            quiet=True,
        ),
    )
    return Workflow(
        name="install",
        steps=steps,
        finish_banner="=== Installation Finished ===",
    )
