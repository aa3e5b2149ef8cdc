"""Interactive session loop and single-shot mode."""

import logging
import os
import readline
import sys
from dataclasses import dataclass, field
from typing import Callable, Optional

from .classifier import InputKind, Shortcut, classify
from .config import AskConfig
from .confirmation import ConfirmationMachine
from .context import ContextManager
from .exceptions import CommandInterrupted, GenerationError
from .executor import CommandExecutor, ExecutionResult
from .generation import OpenRouterGenerator
from .theme import Theme
from .workdir import WorkingDirectory

logger = logging.getLogger(__name__)


def input_no_history(prompt: str = "") -> str:
    """Get input without adding to readline history."""
    hist_len = readline.get_current_history_length()
    result = input(prompt)
    # Remove any items added during this input
    new_len = readline.get_current_history_length()
    for _ in range(new_len - hist_len):
        readline.remove_history_item(new_len - 1)
        new_len -= 1
    return result


def clear_terminal():
    os.system("cls" if os.name == "nt" else "clear")


def _print_error(text: str):
    print(text, file=sys.stderr)


@dataclass
class TurnOutcome:
    """What happened to one model-backed turn."""
    executed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    rejected: bool = False
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.rejected or self.error is not None


class Session:
    """One operator session: classify, confirm, execute, remember.

    Everything runs on one thread, strictly in order: read a line, maybe
    call the model, run approved commands one at a time, record them.
    """

    def __init__(
        self,
        config: AskConfig,
        generator: OpenRouterGenerator | None = None,
        workdir: WorkingDirectory | None = None,
        read: Callable[[str], str] | None = None,
        write: Callable[[str], None] | None = None,
        write_error: Callable[[str], None] | None = None,
        clear_screen: Callable[[], None] | None = None,
    ):
        self.config = config
        self.theme = Theme.from_mode(config.theme)
        self.generator = generator or OpenRouterGenerator(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url,
            timeout=config.request_timeout,
            shell=config.shell,
        )
        self.workdir = workdir or WorkingDirectory()
        self.executor = CommandExecutor(self.workdir, shell=config.shell)
        self.context = ContextManager()
        self.read = read or input
        self.write = write or print
        self.write_error = write_error or _print_error
        self.clear_screen = clear_screen or clear_terminal
        self.confirmation = ConfirmationMachine(
            read=read or input_no_history,
            write=self.write,
            run_instruction=self._run_instruction,
            theme=self.theme,
        )

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def banner(self):
        self.write(self.theme.prompt_text("Interactive mode. Commands: 'exit', 'clear', 'finder'"))
        self.write(self.theme.helper_text("Common commands and scripts execute directly without confirmation"))
        self.write(self.theme.helper_text("Shortcuts: q=quit, .=pwd, ..=cd .."))
        self.write(self.theme.helper_text(f"📁 {self.workdir.path}"))
        self.write("")

    def prompt_string(self) -> str:
        return f"{self.theme.readline_prompt(f'ask [{self.workdir.display_name()}]>')} "

    def show_result(self, result: ExecutionResult):
        """Print what a command produced."""
        if result.error:
            self.write_error(self.theme.error_text(result.error))
            return
        if result.changed_directory:
            self.write(self.theme.helper_text(result.stdout))
            return
        if result.stdout:
            self.write(result.stdout.rstrip("\n"))
        if result.stderr:
            self.write_error(self.theme.error_text(result.stderr.rstrip("\n")))
        if result.returncode != 0:
            self.write_error(self.theme.error_text(f"✗ Command exited with status {result.returncode}"))

    # ------------------------------------------------------------------
    # Readline history
    # ------------------------------------------------------------------

    def _setup_readline(self):
        """Setup readline for input history."""
        history_file = self.config.history_file
        if history_file.exists():
            try:
                readline.read_history_file(history_file)
            except OSError as e:
                logger.debug(f"Could not read history file {history_file}: {e}")
        readline.set_history_length(1000)
        readline.parse_and_bind("tab: complete")

    def _save_history(self):
        """Save readline history."""
        history_file = self.config.history_file
        try:
            history_file.parent.mkdir(parents=True, exist_ok=True)
            readline.write_history_file(history_file)
        except OSError as e:
            logger.debug(f"Could not write history file {history_file}: {e}")

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def run(self):
        """Main interactive loop. Returns when the operator quits or stdin closes."""
        self._setup_readline()
        self.banner()
        try:
            while True:
                try:
                    line = self.read(self.prompt_string())
                except KeyboardInterrupt:
                    # Ctrl-C: cancel current line, continue loop
                    self.write("^C")
                    continue
                except EOFError:
                    self.write("Goodbye!")
                    break

                if not self.handle_line(line):
                    break
        finally:
            self._save_history()

    def handle_line(self, line: str) -> bool:
        """Dispatch one input line.

        Returns:
            False when the session should end, True otherwise
        """
        classification = classify(line)
        logger.debug(f"Classified {line.strip()!r} as {classification.kind.value}")

        try:
            if classification.kind == InputKind.BLANK:
                return True
            if classification.kind == InputKind.SHORTCUT:
                return self.handle_shortcut(classification.shortcut)
            if classification.kind == InputKind.DIRECT:
                self.run_direct(line.strip(), classification.text)
            else:
                self.process_prompt(classification.text)
                self.write("")
        except CommandInterrupted as e:
            logger.info(f"Turn abandoned: {e}")
            self.write_error(self.theme.error_text(f"\n{e}"))
        except KeyboardInterrupt:
            logger.info("Turn abandoned by keyboard interrupt")
            self.write("^C")
        except EOFError:
            # stdin closed mid-confirmation ends the session like Ctrl-D at the prompt
            logger.info("Input closed during a turn")
            self.write("\nGoodbye!")
            return False
        return True

    def handle_shortcut(self, shortcut: Shortcut) -> bool:
        if shortcut == Shortcut.QUIT:
            self.write("Goodbye!")
            return False

        if shortcut == Shortcut.CLEAR:
            self.context.clear()
            self.clear_screen()
            self.banner()
        elif shortcut == Shortcut.PWD:
            self.run_direct("pwd", "pwd")
        elif shortcut == Shortcut.PARENT_DIR:
            self.run_direct("cd ..", "cd ..")
        elif shortcut == Shortcut.FINDER:
            result = self.executor.open_file_browser()
            if result.error:
                self.write_error(self.theme.error_text(result.error))
            elif result.returncode != 0:
                self.write_error(self.theme.error_text(
                    f"Failed to open file browser: {result.command} exited with status {result.returncode}"
                ))
            else:
                self.write(self.theme.helper_text("Opened file browser at current directory"))
        return True

    def run_direct(self, prompt: str, command: str) -> ExecutionResult:
        """Execute a command without confirmation and record it."""
        self.write(f"{self.theme.prompt_text('run>')} {self.theme.command_text(command)}")
        result = self.executor.execute(command)
        self.show_result(result)
        if result.recordable:
            self.context.record(prompt, command, result.combined_output)
        return result

    def show_explanation(self, text: Optional[str]):
        if text:
            self.write(self.theme.helper_text(text) + "\n")

    def _run_instruction(self, command: str):
        """Run an instruct command; its result never enters the context."""
        result = self.executor.execute(command)
        self.show_result(result)

    def process_prompt(self, prompt: str) -> TurnOutcome:
        """Ask the model, then confirm and run each proposed command in order."""
        outcome = TurnOutcome()
        try:
            reply = self.generator.generate(prompt, self.context.render(), cwd=self.workdir.path)
        except GenerationError as e:
            logger.warning(f"Generation failed: {e}")
            self.write_error(self.theme.error_text(f"Error: {e}"))
            outcome.error = str(e)
            return outcome

        if reply.conversational_text:
            if not reply.commands:
                self.write(self.theme.helper_text(reply.conversational_text) + "\n")
            self.context.record(prompt, None, reply.conversational_text)

        for index, command in enumerate(reply.commands):
            self.show_explanation(reply.explanation_for(index))
            decision = self.confirmation.confirm(command)
            if decision.rejected:
                outcome.rejected = True
                break
            if decision.skipped:
                outcome.skipped.append(command)
                continue

            result = self.executor.execute(command)
            self.show_result(result)
            self.context.record(prompt, command, result.error or result.combined_output)
            outcome.executed.append(command)

        if not outcome.rejected and reply.commands:
            self.show_explanation(reply.explanation_for(len(reply.commands)))
        return outcome

    def run_once(self, prompt: str) -> int:
        """Single-shot mode: one turn, then an exit status.

        Returns:
            0 if the turn completed, 1 if the operator rejected a command,
            generation failed or input closed, 130 on Ctrl-C
        """
        try:
            outcome = self.process_prompt(prompt)
        except (CommandInterrupted, KeyboardInterrupt) as e:
            logger.info(f"Single-shot turn interrupted: {e}")
            self.write("^C")
            return 130
        except EOFError:
            # stdin closed while confirming: nothing more was approved
            logger.info("Input closed during single-shot confirmation")
            self.write("Command execution cancelled")
            return 1
        return 1 if outcome.failed else 0
