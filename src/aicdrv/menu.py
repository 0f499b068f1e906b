"""Interactive menu text and choice parsing."""

from __future__ import annotations

from enum import Enum

from aicdrv.exceptions import InvalidChoiceError

TITLE = "=== AIC8800D80 WiFi Driver Installer/Uninstaller ==="
PROMPT = "Enter your choice (1, 2, or 3)"


class MenuChoice(str, Enum):
    """Options offered by the interactive menu."""
    INSTALL = "1"
    UNINSTALL = "2"
    EXIT = "3"


OPTION_LABELS: dict[MenuChoice, str] = {
    MenuChoice.INSTALL: "Install the driver",
    MenuChoice.UNINSTALL: "Uninstall the driver",
    MenuChoice.EXIT: "Exit",
}


def menu_lines(repo_url: str) -> list[str]:
    """Lines printed below the title, ending with the option list."""
    source = repo_url.removesuffix(".git")
    lines = [
        f"This tool manages the AIC8800D80 driver from {source}",
        "Supported devices: Tenda U11, AX913B (WiFi only, no Bluetooth).",
        "",
        "Choose an option:",
    ]
    lines.extend(f"  {choice.value}) {label}" for choice, label in OPTION_LABELS.items())
    return lines


def parse_choice(text: str) -> MenuChoice:
    """Map one line of operator input to a menu choice.

    Raises:
        InvalidChoiceError: For anything other than 1, 2 or 3.
    """
    try:
        return MenuChoice(text.strip())
    except ValueError:
        raise InvalidChoiceError("Invalid choice. Please select 1, 2, or 3.") from None
