"""Command execution against the host shell.

``cd`` is never spawned: it is resolved against the tracked working
directory, which every other command then uses as its cwd.
"""

import logging
import os
import shlex
import signal
import subprocess
import sys
from dataclasses import dataclass
from typing import Optional

from .classifier import tokenize
from .config import DEFAULT_SHELL
from .exceptions import CommandInterrupted, DirectoryNavigationError
from .workdir import WorkingDirectory

logger = logging.getLogger(__name__)

# Commands that may require password input - run these attached to the terminal
INTERACTIVE_COMMANDS = {'sudo', 'su', 'ssh', 'scp', 'sftp', 'passwd', 'kinit', 'docker login', 'npm login', 'gh auth'}

# Operator characters after which the next word is a new command
COMMAND_SEPARATOR_CHARS = frozenset("|;&(")

# Seconds to wait after SIGTERM before escalating to SIGKILL
KILL_GRACE_PERIOD = 5.0


def requires_interactive_mode(command: str) -> bool:
    """Check if a command might require password input and should run interactively.

    Entries match whole words: the command word (or the first two words for
    entries like ``docker login``), and ``sudo`` anywhere in command position.
    """
    try:
        tokens = [tok.lower() for tok in tokenize(command)]
    except ValueError:
        tokens = command.lower().split()
    if not tokens:
        return False

    if tokens[0] in INTERACTIVE_COMMANDS or " ".join(tokens[:2]) in INTERACTIVE_COMMANDS:
        return True

    # sudo somewhere in a pipeline or command list
    for previous, token in zip(tokens, tokens[1:]):
        if token == "sudo" and previous and all(ch in COMMAND_SEPARATOR_CHARS for ch in previous):
            return True
    return False


def parse_cd(command: str) -> tuple[bool, Optional[str]]:
    """Recognise a plain ``cd [target]`` command.

    Returns:
        Tuple of (is_cd, target). Compound commands such as ``cd x && make``
        are not plain cd and go to the shell.
    """
    try:
        parts = shlex.split(command.strip())
    except ValueError:
        return False, None
    if not parts or parts[0] != "cd" or len(parts) > 2:
        return False, None
    return True, parts[1] if len(parts) == 2 else None


@dataclass
class ExecutionResult:
    """Outcome of running one command."""
    command: str
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0
    error: Optional[str] = None          # spawn or navigation failure
    changed_directory: bool = False
    captured: bool = True

    @property
    def success(self) -> bool:
        return self.returncode == 0 and self.error is None

    @property
    def recordable(self) -> bool:
        """Whether the result may be added to session context.

        A non-zero exit still counts; a command that never ran does not.
        """
        return self.error is None

    @property
    def combined_output(self) -> str:
        """stdout and stderr as stored in context."""
        if not self.captured:
            return "(interactive mode - output not captured)"
        result = self.stdout
        if self.stderr:
            result += "\n" + self.stderr
        if self.returncode != 0:
            result += f"\n(exit status {self.returncode})"
        return result


class CommandExecutor:
    """Runs commands in the tracked working directory."""

    def __init__(self, workdir: WorkingDirectory, shell: str = DEFAULT_SHELL):
        """Initialize the executor.

        Args:
            workdir: The session's working directory (mutated by cd)
            shell: Path to shell interpreter
        """
        self.workdir = workdir
        self.shell = shell

    def execute(self, command: str) -> ExecutionResult:
        """Execute a command.

        Raises:
            CommandInterrupted: If the operator pressed Ctrl-C while it ran
        """
        is_cd, target = parse_cd(command)
        if is_cd:
            return self.change_directory(command, target)
        if requires_interactive_mode(command):
            return self.run_interactive(command)
        return self.run_captured(command)

    def change_directory(self, command: str, target: Optional[str]) -> ExecutionResult:
        """Apply a cd to the tracked directory without spawning anything."""
        try:
            new_path = self.workdir.change_to(target)
        except DirectoryNavigationError as e:
            logger.info(f"cd failed: {e}")
            return ExecutionResult(command, stderr=str(e), returncode=1, error=str(e))
        return ExecutionResult(command, stdout=f"Changed directory to: {new_path}", changed_directory=True)

    def run_captured(self, command: str) -> ExecutionResult:
        """Run through the shell, capturing stdout and stderr."""
        logger.debug(f"Running {command!r} in {self.workdir.path}")
        try:
            process = subprocess.Popen(
                command,
                shell=True,
                executable=self.shell,
                cwd=self.workdir.path,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                start_new_session=True,  # For process group signaling
            )
        except OSError as e:
            logger.error(f"Failed to start {command!r}: {e}")
            return ExecutionResult(command, returncode=-1, error=f"Error executing command: {e}")

        with process:
            try:
                stdout, stderr = process.communicate()
            except KeyboardInterrupt:
                self._kill_process_group(process)
                raise CommandInterrupted(command)

        logger.debug(f"{command!r} exited with {process.returncode}")
        return ExecutionResult(command, stdout=stdout, stderr=stderr, returncode=process.returncode)

    def run_interactive(self, command: str) -> ExecutionResult:
        """Run attached to the terminal so password prompts work.

        The output is never captured, so a password never reaches the context.
        """
        logger.debug(f"Running {command!r} interactively in {self.workdir.path}")
        try:
            process = subprocess.Popen(
                command,
                shell=True,
                executable=self.shell,
                cwd=self.workdir.path,
            )
        except OSError as e:
            logger.error(f"Failed to start {command!r}: {e}")
            return ExecutionResult(command, returncode=-1, error=f"Error executing command: {e}", captured=False)

        with process:
            try:
                returncode = process.wait()
            except KeyboardInterrupt:
                # The child shares our process group and got the SIGINT too
                process.kill()
                process.wait()
                raise CommandInterrupted(command)

        return ExecutionResult(command, returncode=returncode, captured=False)

    def open_file_browser(self) -> ExecutionResult:
        """Open the working directory in the platform's file browser."""
        if sys.platform == "darwin":
            argv = ["open", "."]
        elif sys.platform.startswith("win"):
            argv = ["explorer", "."]
        else:
            argv = ["xdg-open", "."]

        try:
            completed = subprocess.run(
                argv,
                cwd=self.workdir.path,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning(f"Failed to open file browser: {e}")
            return ExecutionResult(" ".join(argv), returncode=-1, error=f"Failed to open file browser: {e}", captured=False)
        return ExecutionResult(" ".join(argv), returncode=completed.returncode, captured=False)

    def _kill_process_group(self, process: subprocess.Popen):
        """Kill a process and its process group, then reap it."""
        try:
            os.killpg(os.getpgid(process.pid), signal.SIGTERM)
        except (ProcessLookupError, OSError):
            pass

        try:
            process.wait(timeout=KILL_GRACE_PERIOD)
        except subprocess.TimeoutExpired:
            # Force kill if SIGTERM didn't work
            try:
                os.killpg(os.getpgid(process.pid), signal.SIGKILL)
            except (ProcessLookupError, OSError):
                pass
            process.wait()
