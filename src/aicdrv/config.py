"""Installer configuration: fixed paths and constants for the AIC8800D80 driver."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from aicdrv.exceptions import ConfigError

_PLAIN_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")

# Environment overrides accepted by load_config(), mapped to field names.
_ENV_OVERRIDES: dict[str, str] = {
    "AICDRV_REPO_URL": "repo_url",
    "AICDRV_CHECKOUT_DIR": "checkout_dir",
    "AICDRV_PROGRESS_PACE": "progress_pace_s",
    "AICDRV_COMMAND_TIMEOUT": "command_timeout_s",
}


class InstallerConfig(BaseModel):
    """Locations and constants used by the install and uninstall workflows."""

    model_config = ConfigDict(frozen=True)

    repo_url: str = "https://github.com/shenmintao/aic8800d80.git"
    checkout_dir: Path = Path("/tmp/aic8800d80")

    firmware_dir: Path = Path("/lib/firmware")
    firmware_prefix: str = "aic8800"
    firmware_payload: str = Field(
        default="fw/aic8800D80",
        description="Firmware directory inside the checkout",
    )

    udev_rule_name: str = "aic.rules"
    udev_rules_dir: Path = Path("/etc/udev/rules.d")
    udev_packaged_rules_dir: Path = Path("/lib/udev/rules.d")

    build_subdir: str = "drivers/aic8800"
    module_name: str = "aic8800_fdrv"
    modules_root: Path = Path("/lib/modules")
    module_subdir: str = "kernel/drivers/net/wireless"
    module_list_filter: str = "aic"
    proc_modules: Path = Path("/proc/modules")

    prerequisite_packages: tuple[str, ...] = ("git", "build-essential", "bc")
    headers_package_template: str = "linux-headers-{release}"
    kernel_release: str | None = Field(
        default=None,
        description="Override for the running kernel release (uname -r)",
    )

    command_timeout_s: float = Field(default=900.0, gt=0)
    progress_pace_s: float = Field(
        default=0.0,
        ge=0,
        description="Seconds of progress animation per unit of step weight",
    )

    @field_validator("checkout_dir")
    @classmethod
    def validate_checkout_dir(cls, v: Path) -> Path:
        if not v.is_absolute():
            raise ValueError(f"checkout_dir must be absolute: {v}")
        if v == Path(v.anchor):
            raise ValueError("checkout_dir must not be the filesystem root")
        return v

    @field_validator("firmware_prefix", "module_name", "udev_rule_name")
    @classmethod
    def validate_plain_name(cls, v: str) -> str:
        if not _PLAIN_NAME_RE.fullmatch(v):
            raise ValueError(f"Expected a plain file name, got {v!r}")
        return v

    @property
    def module_filename(self) -> str:
        return f"{self.module_name}.ko"


def load_config(environ: Mapping[str, str] | None = None) -> InstallerConfig:
    """Build the configuration, applying ``AICDRV_*`` environment overrides.

    Raises:
        ConfigError: If an override fails validation.
    """
    env = os.environ if environ is None else environ
    overrides = {
        field: env[key] for key, field in _ENV_OVERRIDES.items() if env.get(key)
    }
    try:
        return InstallerConfig(**overrides)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
