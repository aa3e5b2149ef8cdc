"""Terminal colour themes for prompts, commands and helper text."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

RESET = "\033[0m"
ERROR_COLOR = "\033[1;31m"


class ThemeMode(str, Enum):
    """Colour scheme selected with --theme."""
    LIGHT = "light"
    DARK = "dark"

    @classmethod
    def parse(cls, value: str) -> Optional["ThemeMode"]:
        """Return the mode named by value (case-insensitive), or None."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class Theme:
    helper_color: str
    command_color: str
    prompt_color: str

    @classmethod
    def from_mode(cls, mode: ThemeMode) -> "Theme":
        if mode == ThemeMode.LIGHT:
            return cls(
                helper_color="\033[35m",
                command_color="\033[31m",
                prompt_color="\033[34m",
            )
        return cls(
            helper_color="\033[36;1m",
            command_color="\033[93m",
            prompt_color="\033[92m",
        )

    def helper_text(self, text: str) -> str:
        return f"{self.helper_color}{text}{RESET}"

    def command_text(self, text: str) -> str:
        return f"{self.command_color}{text}{RESET}"

    def prompt_text(self, text: str) -> str:
        return f"{self.prompt_color}{text}{RESET}"

    def error_text(self, text: str) -> str:
        return f"{ERROR_COLOR}{text}{RESET}"

    # Text passed to input() needs its ANSI codes wrapped in \001/\002 so
    # readline can track the cursor position.
    def readline_prompt(self, text: str) -> str:
        return f"\x01{self.prompt_color}\x02{text}\x01{RESET}\x02"

    def readline_command(self, text: str) -> str:
        return f"\x01{self.command_color}\x02{text}\x01{RESET}\x02"
