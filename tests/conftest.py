"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from aicdrv.config import InstallerConfig
from aicdrv.driver.manager import DriverManager
from aicdrv.system import CommandResult

KERNEL_RELEASE = "6.1.0-test-amd64"


class FakeRunner:
    """Scripted stand-in for CommandRunner that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[tuple[str, ...], Path | None]] = []
        self._handlers: dict[tuple[str, ...], tuple[int, str, str, Callable | None]] = {}

    def on(
        self,
        *prefix: str,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        effect: Callable[[tuple[str, ...], Path | None], None] | None = None,
    ) -> FakeRunner:
        self._handlers[prefix] = (returncode, stdout, stderr, effect)
        return self

    def run(self, args, cwd: Path | None = None) -> CommandResult:
        argv = tuple(str(a) for a in args)
        self.calls.append((argv, cwd))
        for prefix in sorted(self._handlers, key=len, reverse=True):
            if argv[:len(prefix)] == prefix:
                returncode, stdout, stderr, effect = self._handlers[prefix]
                if effect is not None:
                    effect(argv, cwd)
                return CommandResult(argv, returncode, stdout, stderr)
        return CommandResult(argv, 0)

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [argv for argv, _ in self.calls]

    def ran(self, *prefix: str) -> bool:
        return any(argv[:len(prefix)] == prefix for argv in self.commands)


@pytest.fixture()
def config(tmp_path: Path) -> InstallerConfig:
    """Configuration with every host path redirected under tmp_path."""
    firmware = tmp_path / "lib" / "firmware"
    etc_rules = tmp_path / "etc" / "udev" / "rules.d"
    lib_rules = tmp_path / "lib" / "udev" / "rules.d"
    modules = tmp_path / "lib" / "modules"
    for d in (firmware, etc_rules, lib_rules, modules):
        d.mkdir(parents=True)
    proc_modules = tmp_path / "proc_modules"
    proc_modules.write_text("")

    return InstallerConfig(
        checkout_dir=tmp_path / "tmp" / "aic8800d80",
        firmware_dir=firmware,
        udev_rules_dir=etc_rules,
        udev_packaged_rules_dir=lib_rules,
        modules_root=modules,
        proc_modules=proc_modules,
        kernel_release=KERNEL_RELEASE,
    )


@pytest.fixture()
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def mgr(config: InstallerConfig, fake_runner: FakeRunner) -> DriverManager:
    return DriverManager(config, runner=fake_runner)


@pytest.fixture()
def set_loaded(config: InstallerConfig) -> Callable[..., None]:
    """Write the given module names into the fake /proc/modules."""

    def _set(*names: str) -> None:
        lines = [f"{n} 2310144 0 - Live 0x0000000000000000" for n in names]
        config.proc_modules.write_text("".join(f"{line}\n" for line in lines))

    return _set


@pytest.fixture()
def fake_clone(config: InstallerConfig) -> Callable[[tuple[str, ...], Path | None], None]:
    """git clone effect that lays out a minimal driver source tree."""

    def _clone(argv: tuple[str, ...], cwd: Path | None) -> None:
        root = Path(argv[-1])
        (root / "fw" / "aic8800D80").mkdir(parents=True)
        (root / "fw" / "aic8800D80" / "fmacfw_8800d80_u02.bin").write_bytes(b"\x00" * 16)
        (root / config.build_subdir).mkdir(parents=True)
        (root / config.udev_rule_name).write_text('ACTION=="add", ATTR{idVendor}=="a69c"\n')

    return _clone


@pytest.fixture()
def host_with_driver(config: InstallerConfig, set_loaded) -> InstallerConfig:
    """A host where the driver is fully installed and loaded."""
    fw = config.firmware_dir / "aic8800D80"
    fw.mkdir()
    (fw / "fmacfw_8800d80_u02.bin").write_bytes(b"\x00")
    (config.firmware_dir / "aic8800_legacy.bin").write_bytes(b"\x00")
    (config.udev_rules_dir / config.udev_rule_name).write_text("rule\n")
    ko = (config.modules_root / KERNEL_RELEASE / config.module_subdir / config.module_filename)
    ko.parent.mkdir(parents=True)
    ko.write_bytes(b"\x7fELF")
    set_loaded("cfg80211", config.module_name)
    return config
