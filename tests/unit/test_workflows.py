"""Install and uninstall workflows run end to end against a fake host."""

from __future__ import annotations

import pytest

from aicdrv.driver.manager import DriverManager
from aicdrv.workflow.install import build_install_workflow
from aicdrv.workflow.runner import WorkflowRunner
from aicdrv.workflow.uninstall import build_uninstall_workflow

INSTALL_ORDER = (
    "prerequisites", "clone", "old-firmware", "udev-rule", "firmware",
    "compile", "load", "verify", "cleanup",
)
UNINSTALL_ORDER = ("unload", "firmware", "udev-rule", "module-file", "cleanup")


@pytest.fixture()
def install_host(config, fake_runner, fake_clone, set_loaded):
    """Fake runner scripted for a successful install."""

    def _make_install(argv, cwd):
        ko = (config.modules_root / config.kernel_release
              / config.module_subdir / config.module_filename)
        ko.parent.mkdir(parents=True, exist_ok=True)
        ko.write_bytes(b"\x7fELF")

    fake_runner.on("git", "clone", effect=fake_clone)
    fake_runner.on("make", "install", effect=_make_install)
    fake_runner.on("modprobe", effect=lambda argv, cwd: set_loaded("aic8800_fdrv"))
    fake_runner.on("lsmod", stdout="aic8800_fdrv 557056 0\n")
    return fake_runner


def _install(mgr: DriverManager):
    return WorkflowRunner().run(build_install_workflow(mgr))


def _uninstall(mgr: DriverManager):
    return WorkflowRunner().run(build_uninstall_workflow(mgr))


class TestInstallWorkflow:
    def test_step_order_and_fatality(self, mgr: DriverManager):
        wf = build_install_workflow(mgr)
        assert tuple(s.name for s in wf.steps) == INSTALL_ORDER
        assert {s.name for s in wf.steps if s.fatal} == {"prerequisites", "clone", "compile"}

    def test_success(self, mgr: DriverManager, config, install_host):
        report = _install(mgr)
        assert report.exit_code == 0
        assert report.completed_steps == INSTALL_ORDER
        assert (config.udev_rules_dir / "aic.rules").exists()
        assert (config.firmware_dir / "aic8800D80").is_dir()
        assert mgr.installed_module_path.exists()
        assert mgr.is_module_loaded()
        assert not config.checkout_dir.exists()
        assert report.result("load").message == "Module loaded successfully."
        assert report.result("verify").message.startswith("Installation complete!")
        assert report.result("cleanup").message == ""

    def test_stale_symlink_at_checkout(self, mgr: DriverManager, config, install_host, tmp_path):
        target = tmp_path / "unrelated"
        target.mkdir()
        config.checkout_dir.parent.mkdir(parents=True, exist_ok=True)
        config.checkout_dir.symlink_to(target, target_is_directory=True)
        report = _install(mgr)
        assert report.exit_code == 0
        assert target.is_dir()
        assert not config.checkout_dir.exists()

    def test_old_firmware_replaced(self, mgr: DriverManager, config, install_host):
        (config.firmware_dir / "aic8800_stale.bin").write_bytes(b"")
        _install(mgr)
        assert [p.name for p in mgr.firmware_entries()] == ["aic8800D80"]

    def test_prerequisite_failure_aborts(self, mgr: DriverManager, install_host):
        install_host.on("apt-get", "install", returncode=100)
        report = _install(mgr)
        assert report.exit_code == 1
        assert report.aborted_at == "prerequisites"
        assert not install_host.ran("git")

    def test_clone_failure_aborts(self, mgr: DriverManager, install_host):
        install_host.on("git", "clone", returncode=128)
        report = _install(mgr)
        assert report.aborted_at == "clone"
        assert report.result("clone").message.startswith("Failed to clone repository")
        assert not install_host.ran("make")

    def test_compile_failure_stops_before_install_and_load(self, mgr: DriverManager, install_host):
        install_host.on("make", returncode=2)
        install_host.on("make", "clean", returncode=0)
        report = _install(mgr)
        assert report.exit_code == 1
        assert report.aborted_at == "compile"
        assert report.completed_steps == INSTALL_ORDER[:6]
        assert not install_host.ran("make", "install")
        assert not install_host.ran("modprobe")
        assert not install_host.ran("lsmod")
        assert not install_host.ran("iwconfig")

    def test_load_failure_is_not_fatal(self, mgr: DriverManager, install_host):
        install_host.on("modprobe", returncode=1)
        report = _install(mgr)
        assert report.exit_code == 0
        assert "may not have loaded" in report.result("load").message

    def test_copy_failures_reported_complete(self, mgr: DriverManager, config, install_host):
        # Clone yields an empty tree: no rule file, no firmware payload.
        install_host.on("git", "clone", effect=lambda argv, cwd: config.checkout_dir.mkdir(parents=True))
        report = _install(mgr)
        assert report.exit_code == 0
        for name in ("udev-rule", "firmware"):
            result = report.result(name)
            assert result.succeeded
            assert result.detail


class TestUninstallWorkflow:
    def test_step_order(self, mgr: DriverManager):
        wf = build_uninstall_workflow(mgr)
        assert tuple(s.name for s in wf.steps) == UNINSTALL_ORDER

    def test_loaded_module_and_firmware(self, mgr: DriverManager, fake_runner, set_loaded,
                                        host_with_driver):
        fake_runner.on("modprobe", "-r", effect=lambda argv, cwd: set_loaded("cfg80211"))
        report = _uninstall(mgr)
        assert report.exit_code == 0
        assert not mgr.is_module_loaded()
        assert mgr.firmware_entries() == []
        assert not mgr.installed_module_path.exists()
        assert fake_runner.ran("depmod", "-a")

    def test_not_loaded_proceeds(self, mgr: DriverManager, fake_runner):
        report = _uninstall(mgr)
        assert report.exit_code == 0
        assert report.completed_steps == UNINSTALL_ORDER
        assert report.result("unload").message == "Module aic8800_fdrv not loaded."

    def test_unload_failure_stops(self, mgr: DriverManager, fake_runner, host_with_driver):
        fake_runner.on("modprobe", "-r", returncode=1)
        report = _uninstall(mgr)
        assert report.exit_code == 1
        assert report.completed_steps == ("unload",)
        assert mgr.firmware_entries()
        assert mgr.installed_module_path.exists()
        assert not fake_runner.ran("depmod")

    def test_idempotent(self, mgr: DriverManager, fake_runner, set_loaded, host_with_driver):
        fake_runner.on("modprobe", "-r", effect=lambda argv, cwd: set_loaded())
        assert _uninstall(mgr).exit_code == 0
        assert _uninstall(mgr).exit_code == 0
