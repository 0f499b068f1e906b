"""Host access: subprocess execution, privilege and kernel queries."""

from __future__ import annotations

import os
import platform
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from aicdrv.utils.logging import get_logger

logger = get_logger(__name__)

# Only these environment variables are forwarded to subprocess calls.
# Prevents privilege escalation via LD_PRELOAD, BASH_ENV, etc.
_SAFE_ENV_KEYS = frozenset({
    "HOME",
    "LANG",
    "PATH",
    "TERM",
    "USER",
    "http_proxy",
    "https_proxy",
    "no_proxy",
})

_FIXED_ENV: dict[str, str] = {
    "DEBIAN_FRONTEND": "noninteractive",
    "LC_ALL": "C",
}

_DEFAULT_PATH = "/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin"

RETURNCODE_TIMEOUT = 124
RETURNCODE_NOT_FOUND = 127


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def build_safe_env() -> dict[str, str]:
    """Build a minimal environment for subprocess calls."""
    env: dict[str, str] = {}
    for key in _SAFE_ENV_KEYS:
        value = os.environ.get(key)
        if value is not None:
            env[key] = value
    env.setdefault("PATH", _DEFAULT_PATH)
    env.update(_FIXED_ENV)
    return env


class CommandRunner:
    """Runs external commands synchronously with captured output."""

    def __init__(self, timeout: float = 900.0) -> None:
        self._timeout = timeout

    def run(self, args: Sequence[str], cwd: Path | None = None) -> CommandResult:
        """Run *args* and wait for it to finish.

        A missing executable or a timeout is reported as a failed result,
        never raised.
        """
        argv = tuple(str(a) for a in args)
        logger.debug("command_start", args=argv, cwd=str(cwd) if cwd else None)

        try:
            proc = subprocess.run(
                list(argv),
                cwd=str(cwd) if cwd else None,
                env=build_safe_env(),
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except FileNotFoundError as exc:
            logger.info("command_not_found", command=argv[0], error=str(exc))
            return CommandResult(
                args=argv,
                returncode=RETURNCODE_NOT_FOUND,
                stderr=f"{argv[0]}: command not found",
            )
        except subprocess.TimeoutExpired:
            logger.info("command_timeout", args=argv, timeout=self._timeout)
            return CommandResult(
                args=argv,
                returncode=RETURNCODE_TIMEOUT,
                stderr=f"{argv[0]} timed out after {self._timeout:g} seconds.",
            )

        logger.debug("command_complete", args=argv, returncode=proc.returncode)
        return CommandResult(
            args=argv,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )


def is_root() -> bool:
    """Check if the effective user is root."""
    geteuid = getattr(os, "geteuid", None)
    if geteuid is None:
        return False
    return geteuid() == 0


def kernel_release() -> str:
    """Return the running kernel release, as ``uname -r`` prints it."""
    return platform.release()


def loaded_modules(proc_modules: Path) -> list[str]:
    """Return the names of loaded kernel modules from /proc/modules."""
    try:
        modules_text = proc_modules.read_text()
    except OSError:
        return []
    return [line.split()[0] for line in modules_text.splitlines() if line.strip()]
