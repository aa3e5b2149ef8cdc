"""Per-command confirmation: yes / no / skip / instruct.

The loop is an explicit state machine. ``INSTRUCTING`` runs one operator
supplied command and always returns to ``ASKING`` for the same candidate.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .theme import Theme, ThemeMode

logger = logging.getLogger(__name__)


class ConfirmState(str, Enum):
    ASKING = "asking"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    SKIPPED = "skipped"
    INSTRUCTING = "instructing"


class ConfirmInput(str, Enum):
    YES = "yes"
    NO = "no"
    SKIP = "skip"
    INSTRUCT = "instruct"
    INVALID = "invalid"


TERMINAL_STATES = frozenset({ConfirmState.ACCEPTED, ConfirmState.REJECTED, ConfirmState.SKIPPED})

_RESPONSES = {
    "": ConfirmInput.YES,
    "y": ConfirmInput.YES,
    "yes": ConfirmInput.YES,
    "n": ConfirmInput.NO,
    "no": ConfirmInput.NO,
    "s": ConfirmInput.SKIP,
    "skip": ConfirmInput.SKIP,
    "i": ConfirmInput.INSTRUCT,
    "instruct": ConfirmInput.INSTRUCT,
}

_TRANSITIONS = {
    ConfirmInput.YES: ConfirmState.ACCEPTED,
    ConfirmInput.NO: ConfirmState.REJECTED,
    ConfirmInput.SKIP: ConfirmState.SKIPPED,
    ConfirmInput.INSTRUCT: ConfirmState.INSTRUCTING,
    ConfirmInput.INVALID: ConfirmState.ASKING,
}

USAGE_HINT = "Invalid response. Please use Y(es), n(o), s(kip), or i(nstruct)."


def parse_response(text: str) -> ConfirmInput:
    """Map raw confirmation input to a token. Escape always means no."""
    if "\x1b" in text:
        return ConfirmInput.NO
    return _RESPONSES.get(text.strip().lower(), ConfirmInput.INVALID)


def transition(state: ConfirmState, token: Optional[ConfirmInput] = None) -> ConfirmState:
    """Next state of the confirmation machine.

    ``ASKING`` consumes a token; ``INSTRUCTING`` returns to ``ASKING`` once
    its command has run; terminal states stay put.
    """
    if state == ConfirmState.ASKING:
        if token is None:
            raise ValueError("ASKING needs an input token")
        return _TRANSITIONS[token]
    if state == ConfirmState.INSTRUCTING:
        return ConfirmState.ASKING
    return state


@dataclass
class ConfirmationResult:
    """How one candidate command was resolved."""
    command: str
    state: ConfirmState
    instructions: list[str] = field(default_factory=list)  # instruct commands run meanwhile

    @property
    def accepted(self) -> bool:
        return self.state == ConfirmState.ACCEPTED

    @property
    def rejected(self) -> bool:
        return self.state == ConfirmState.REJECTED

    @property
    def skipped(self) -> bool:
        return self.state == ConfirmState.SKIPPED


class ConfirmationMachine:
    """Drives the confirmation loop for one candidate at a time.

    Args:
        read: Reads one line of operator input for a prompt (``input``-like)
        write: Displays a line to the operator (``print``-like)
        run_instruction: Executes an instruct command immediately
        theme: Colours for prompts
    """

    def __init__(
        self,
        read: Callable[[str], str],
        write: Callable[[str], None],
        run_instruction: Callable[[str], None],
        theme: Theme | None = None,
    ):
        self.read = read
        self.write = write
        self.run_instruction = run_instruction
        self.theme = theme or Theme.from_mode(ThemeMode.DARK)

    def confirm(self, command: str) -> ConfirmationResult:
        """Ask about ``command`` until it is accepted, rejected or skipped."""
        state = ConfirmState.ASKING
        instructions: list[str] = []

        while state not in TERMINAL_STATES:
            if state == ConfirmState.ASKING:
                answer = self.read(
                    f"{self.theme.readline_prompt('run>')} {self.theme.readline_command(command)}?  [Y/n/s/i]  "
                )
                token = parse_response(answer)
                if token == ConfirmInput.INVALID:
                    self.write(USAGE_HINT)
                state = transition(state, token)

            elif state == ConfirmState.INSTRUCTING:
                custom = self.read(f"{self.theme.readline_prompt('enter>')} ").strip()
                if custom:
                    self.write(f"Running custom command: {self.theme.command_text(custom)}")
                    instructions.append(custom)
                    self.run_instruction(custom)
                    self.write("\nReturning to original command:")
                state = transition(state)

        logger.debug(f"Confirmation of {command!r} ended in {state.value}")
        if state == ConfirmState.REJECTED:
            self.write("Command execution cancelled")
        elif state == ConfirmState.SKIPPED:
            self.write(f"Skipping command: {self.theme.command_text(command)}")
        return ConfirmationResult(command, state, instructions)
