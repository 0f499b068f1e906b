"""AIC8800D80 driver deployment, removal, and status.

Wraps apt-get, git, make, modprobe, depmod, lsmod and iwconfig. Each action
returns a StepOutcome so the workflow runner can decide whether a failure
is fatal.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from aicdrv import system
from aicdrv.config import InstallerConfig
from aicdrv.system import CommandResult, CommandRunner
from aicdrv.utils.logging import get_logger
from aicdrv.workflow.models import MessageLevel, StepOutcome

logger = get_logger(__name__)

_OUTPUT_TAIL = 500


@dataclass(frozen=True)
class Prerequisite:
    """A single build/install prerequisite."""

    name: str
    description: str
    satisfied: bool
    detail: str = ""


@dataclass(frozen=True)
class PrerequisiteReport:
    """Full prerequisites check result."""

    items: tuple[Prerequisite, ...] = ()

    @property
    def all_satisfied(self) -> bool:
        return all(p.satisfied for p in self.items)

    @property
    def missing(self) -> tuple[Prerequisite, ...]:
        return tuple(p for p in self.items if not p.satisfied)


@dataclass(frozen=True)
class DriverStatus:
    """Current state of the driver on this host."""

    is_loaded: bool = False
    module_name: str = ""
    kernel_release: str = ""
    module_installed: bool = False
    module_path: str = ""
    firmware_entries: tuple[str, ...] = ()
    udev_rules: tuple[str, ...] = ()
    checkout_present: bool = False


def _tail(result: CommandResult) -> str:
    text = (result.stderr or result.stdout).strip()
    return text[-_OUTPUT_TAIL:]


def _path_present(path: Path) -> bool:
    # exists() is False for a dangling symlink
    return path.exists() or path.is_symlink()


def _remove_path(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


class DriverManager:
    """Performs each deployment and removal action for the driver."""

    def __init__(
        self,
        config: InstallerConfig | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self._config = config or InstallerConfig()
        self._runner = runner or CommandRunner(timeout=self._config.command_timeout_s)

    @property
    def config(self) -> InstallerConfig:
        return self._config

    @property
    def kernel_release(self) -> str:
        return self._config.kernel_release or system.kernel_release()

    @property
    def checkout_dir(self) -> Path:
        return self._config.checkout_dir

    @property
    def build_dir(self) -> Path:
        return self.checkout_dir / self._config.build_subdir

    @property
    def udev_rule_source(self) -> Path:
        return self.checkout_dir / self._config.udev_rule_name

    @property
    def udev_rule_targets(self) -> tuple[Path, ...]:
        name = self._config.udev_rule_name
        return (
            self._config.udev_rules_dir / name,
            self._config.udev_packaged_rules_dir / name,
        )

    @property
    def firmware_source(self) -> Path:
        return self.checkout_dir / self._config.firmware_payload

    @property
    def installed_module_path(self) -> Path:
        return (
            self._config.modules_root
            / self.kernel_release
            / self._config.module_subdir
            / self._config.module_filename
        )

    @property
    def headers_package(self) -> str:
        return self._config.headers_package_template.format(release=self.kernel_release)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_module_loaded(self) -> bool:
        """Check if the driver module is in the loaded-module table."""
        return self._config.module_name in system.loaded_modules(self._config.proc_modules)

    def firmware_entries(self) -> list[Path]:
        """Installed firmware entries matching the driver's prefix."""
        fw_dir = self._config.firmware_dir
        if not fw_dir.is_dir():
            return []
        return sorted(fw_dir.glob(f"{self._config.firmware_prefix}*"))

    def get_status(self) -> DriverStatus:
        """Get current driver status."""
        module_path = self.installed_module_path
        return DriverStatus(
            is_loaded=self.is_module_loaded(),
            module_name=self._config.module_name,
            kernel_release=self.kernel_release,
            module_installed=module_path.exists(),
            module_path=str(module_path),
            firmware_entries=tuple(str(p) for p in self.firmware_entries()),
            udev_rules=tuple(str(p) for p in self.udev_rule_targets if p.exists()),
            checkout_present=_path_present(self.checkout_dir),
        )

    def check_prerequisites(self) -> PrerequisiteReport:
        """Check the host for what the install workflow needs."""
        items: list[Prerequisite] = []

        is_root = system.is_root()
        items.append(Prerequisite(
            name="Root Access",
            description="Required to install packages and load modules",
            satisfied=is_root,
            detail="Running as root" if is_root else "Run with sudo",
        ))

        apt_path = shutil.which("apt-get")
        items.append(Prerequisite(
            name="apt-get",
            description="Debian package manager",
            satisfied=apt_path is not None,
            detail=apt_path or "Not found. A Debian-based distribution is required.",
        ))

        for tool, package in (("git", "git"), ("make", "build-essential"),
                              ("gcc", "build-essential"), ("bc", "bc")):
            path = shutil.which(tool)
            items.append(Prerequisite(
                name=tool,
                description=f"Provided by {package}",
                satisfied=path is not None,
                detail=path or f"Not found. Install with: sudo apt-get install {package}",
            ))

        headers_dir = self._config.modules_root / self.kernel_release / "build"
        items.append(Prerequisite(
            name="Kernel Headers",
            description=self.headers_package,
            satisfied=headers_dir.exists(),
            detail=str(headers_dir) if headers_dir.exists() else (
                f"Not found. Install with: sudo apt-get install {self.headers_package}"
            ),
        ))

        return PrerequisiteReport(items=tuple(items))

    # ------------------------------------------------------------------
    # Install actions
    # ------------------------------------------------------------------

    def install_prerequisites(self) -> StepOutcome:
        """Refresh the package index and install build prerequisites."""
        self._runner.run(["apt-get", "update"])

        packages = [*self._config.prerequisite_packages, self.headers_package]
        result = self._runner.run(["apt-get", "install", "-y", *packages])
        if not result.ok:
            logger.info("prerequisites_failed", returncode=result.returncode)
            return StepOutcome(succeeded=False, detail=_tail(result))
        return StepOutcome()

    def fetch_source(self) -> StepOutcome:
        """Replace any stale checkout with a fresh clone."""
        if _path_present(self.checkout_dir):
            logger.info("stale_checkout_removed", path=str(self.checkout_dir))
            _remove_path(self.checkout_dir)

        result = self._runner.run(
            ["git", "clone", self._config.repo_url, str(self.checkout_dir)],
        )
        if not result.ok:
            logger.info("clone_failed", url=self._config.repo_url, returncode=result.returncode)
            return StepOutcome(succeeded=False, detail=_tail(result))
        return StepOutcome()

    def remove_firmware(self) -> StepOutcome:
        """Delete firmware entries matching the driver's prefix."""
        errors: list[str] = []
        for entry in self.firmware_entries():
            try:
                _remove_path(entry)
            except OSError as exc:
                errors.append(f"{entry}: {exc}")
        if errors:
            logger.info("firmware_remove_errors", errors=errors)
            return StepOutcome(
                succeeded=False,
                message="Some firmware files could not be removed.",
                detail="; ".join(errors),
            )
        return StepOutcome()

    def install_udev_rule(self) -> StepOutcome:
        """Copy the udev rule into the system rules directory.

        The copy result is not checked: a failure is logged and kept in the
        outcome's detail, but the step still reports success.
        """
        dest_dir = self._config.udev_rules_dir
        try:
            shutil.copy2(self.udev_rule_source, dest_dir / self._config.udev_rule_name)
        except OSError as exc:
            logger.info("copy_failed_ignored", source=str(self.udev_rule_source), error=str(exc))
            return StepOutcome(detail=str(exc))
        return StepOutcome()

    def install_firmware(self) -> StepOutcome:
        """Copy the firmware payload directory into the firmware directory.

        Unchecked, like install_udev_rule().
        """
        source = self.firmware_source
        dest = self._config.firmware_dir / source.name
        try:
            shutil.copytree(source, dest, dirs_exist_ok=True)
        except OSError as exc:
            logger.info("copy_failed_ignored", source=str(source), error=str(exc))
            return StepOutcome(detail=str(exc))
        return StepOutcome()

    def build_module(self) -> StepOutcome:
        """Run ``make clean`` then ``make`` in the driver build directory."""
        logger.info("driver_build_start", build_dir=str(self.build_dir))
        self._runner.run(["make", "clean"], cwd=self.build_dir)
        result = self._runner.run(["make"], cwd=self.build_dir)
        logger.info("driver_build_complete", success=result.ok, return_code=result.returncode)
        if not result.ok:
            return StepOutcome(succeeded=False, detail=_tail(result))
        return StepOutcome()

    def install_and_load_module(self) -> StepOutcome:
        """Install the built module and load it into the running kernel."""
        self._runner.run(["make", "install"], cwd=self.build_dir)
        self._runner.run(["modprobe", self._config.module_name])

        if self.is_module_loaded():
            return StepOutcome(message="Module loaded successfully.")
        logger.info("module_not_loaded", module=self._config.module_name)
        return StepOutcome(
            message="Module may not have loaded. Check dmesg for errors.",
            level=MessageLevel.WARN,
        )

    def verify_installation(self) -> StepOutcome:
        """Collect loaded-module and wireless-interface listings."""
        pattern = self._config.module_list_filter
        lsmod = self._runner.run(["lsmod"])
        if lsmod.ok:
            matches = [line for line in lsmod.stdout.splitlines() if pattern in line]
            modules_text = "\n".join(matches) if matches else f"(no modules matching '{pattern}')"
        else:
            modules_text = f"(lsmod unavailable: {_tail(lsmod)})"

        iwconfig = self._runner.run(["iwconfig"])
        # iwconfig prints "no wireless extensions" lines to stderr
        interfaces_text = (iwconfig.stdout + iwconfig.stderr).strip()
        if iwconfig.returncode == system.RETURNCODE_NOT_FOUND:
            interfaces_text = "(iwconfig not installed)"

        output = "\n".join([
            "Checking loaded modules:",
            modules_text,
            "",
            "Checking WiFi interfaces (plug in your device if needed):",
            interfaces_text,
        ])
        return StepOutcome(output=output)

    def remove_checkout(self) -> StepOutcome:
        """Delete the temporary checkout directory, if present."""
        if _path_present(self.checkout_dir):
            try:
                _remove_path(self.checkout_dir)
            except OSError as exc:
                logger.warning("checkout_remove_failed", path=str(self.checkout_dir), error=str(exc))
        return StepOutcome()

    # ------------------------------------------------------------------
    # Uninstall actions
    # ------------------------------------------------------------------

    def unload_module(self) -> StepOutcome:
        """Unload the module if it is loaded.

        Fails only when the module is still loaded after ``modprobe -r``.
        """
        name = self._config.module_name
        if not self.is_module_loaded():
            return StepOutcome(message=f"Module {name} not loaded.", level=MessageLevel.WARN)

        logger.info("driver_unload_start", module=name)
        result = self._runner.run(["modprobe", "-r", name])
        if self.is_module_loaded():
            logger.info("driver_unload_failed", module=name, returncode=result.returncode)
            return StepOutcome(succeeded=False, detail=_tail(result))
        return StepOutcome(message="Module unloaded.")

    def purge_firmware(self) -> StepOutcome:
        """Delete firmware entries; always reports success."""
        for entry in self.firmware_entries():
            try:
                _remove_path(entry)
            except OSError as exc:
                logger.warning("firmware_remove_failed", path=str(entry), error=str(exc))
        return StepOutcome()

    def remove_udev_rule(self) -> StepOutcome:
        """Delete the rule from both rules directories; always reports success."""
        for path in self.udev_rule_targets:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("udev_rule_remove_failed", path=str(path), error=str(exc))
        return StepOutcome()

    def remove_module_file(self) -> StepOutcome:
        """Delete the installed module and refresh module dependencies."""
        path = self.installed_module_path
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("module_remove_failed", path=str(path), error=str(exc))
        self._runner.run(["depmod", "-a"])
        return StepOutcome()
