"""Input classification: shortcut, direct command, or model request.

Classification is a pure function of the input line. A line runs directly
only when its verb is on the allow-list AND none of its tokens is on the
deny-list; the deny-list always wins.
"""

import os
import shlex
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class InputKind(str, Enum):
    """What the session loop should do with a line."""
    BLANK = "blank"
    SHORTCUT = "shortcut"
    DIRECT = "direct"
    GENERATE = "generate"


class Shortcut(str, Enum):
    """Control tokens handled without the model."""
    QUIT = "quit"
    PWD = "pwd"
    PARENT_DIR = "parent_dir"
    FINDER = "finder"
    CLEAR = "clear"


@dataclass(frozen=True)
class Classification:
    """Result of classifying one input line."""
    kind: InputKind
    text: str = ""
    shortcut: Optional[Shortcut] = None


SHORTCUTS: dict[str, Shortcut] = {
    "q": Shortcut.QUIT,
    "exit": Shortcut.QUIT,
    "quit": Shortcut.QUIT,
    ".": Shortcut.PWD,
    "..": Shortcut.PARENT_DIR,
    "finder": Shortcut.FINDER,
    "clear": Shortcut.CLEAR,
}

# ============================================================================
# Allow-list: read-only / informational verbs
# ============================================================================

SAFE_VERBS = frozenset({
    # File listing and navigation
    "ls", "ll", "la", "dir", "pwd", "tree", "cd",
    # File reading
    "cat", "head", "tail", "wc", "file", "stat", "grep", "egrep", "fgrep",
    "rg", "find", "diff",
    # System information
    "date", "cal", "uptime", "whoami", "hostname", "uname", "id", "groups",
    "df", "du", "free", "ps", "who", "w", "nproc", "arch", "sw_vers",
    # Environment
    "env", "printenv", "echo", "which", "type", "alias", "history",
})

SAFE_NAMESPACED = frozenset({
    # Git read operations
    ("git", "status"), ("git", "log"), ("git", "diff"), ("git", "show"),
    ("git", "blame"), ("git", "shortlog"), ("git", "describe"),
    ("git", "ls-files"), ("git", "rev-parse"),
    # Package managers (list only)
    ("brew", "list"), ("npm", "list"), ("npm", "ls"), ("pip", "list"),
    ("pip", "show"), ("pip", "freeze"), ("pip3", "list"), ("cargo", "search"),
})

# Script runners; "python3 tool.py" runs directly, "python3 -c ..." does not
SCRIPT_INTERPRETERS = frozenset({
    "python", "python3", "node", "ruby", "perl", "php", "bash", "sh", "zsh",
})

SCRIPT_EXTENSIONS: dict[str, str] = {
    ".py": "python3",
    ".js": "node",
    ".mjs": "node",
    ".rb": "ruby",
    ".sh": "bash",
    ".bash": "bash",
    ".zsh": "zsh",
    ".pl": "perl",
    ".php": "php",
}

# ============================================================================
# Deny-list: anything that mutates the system
# ============================================================================

PRIVILEGE_PREFIXES = frozenset({"sudo", "doas", "su", "pkexec"})

DENIED_TOKENS = frozenset({
    # File/dir creation and deletion
    "rm", "rmdir", "mv", "cp", "mkdir", "touch", "ln", "unlink", "dd",
    "truncate", "shred", "tee", "mkfs", "fdisk", "rsync", "scp",
    # Permission changes
    "chmod", "chown", "chgrp", "chattr",
    # Package installation
    "install", "uninstall", "reinstall", "upgrade", "purge", "remove",
    # Process and system control
    "kill", "killall", "pkill", "shutdown", "reboot", "halt", "crontab",
    # find actions that modify files or run arbitrary commands
    "-delete", "-exec", "-execdir", "-ok", "-okdir", "-fprint",
})

DENIED_SEQUENCES = frozenset({
    # Write-mode version control
    ("git", "add"), ("git", "commit"), ("git", "push"), ("git", "pull"),
    ("git", "merge"), ("git", "rebase"), ("git", "reset"), ("git", "checkout"),
    ("git", "switch"), ("git", "restore"), ("git", "clean"), ("git", "stash"),
    ("git", "rm"), ("git", "mv"), ("git", "cherry-pick"), ("git", "revert"),
    ("git", "tag"), ("git", "branch"), ("git", "remote"), ("git", "fetch"),
    ("git", "clone"), ("git", "init"), ("git", "apply"), ("git", "am"),
    # Package managers that spell install differently
    ("npm", "i"), ("npm", "ci"), ("yarn", "add"), ("pnpm", "add"),
    ("brew", "tap"), ("cargo", "add"),
})

SHELL_OPERATOR_CHARS = frozenset("();<>|&")


def tokenize(line: str) -> list[str]:
    """Split a command line into words and shell operators.

    Raises:
        ValueError: On unbalanced quotes
    """
    lexer = shlex.shlex(line, posix=True, punctuation_chars=True)
    lexer.whitespace_split = True
    lexer.commenters = ""
    return list(lexer)


def _is_operator(token: str) -> bool:
    return bool(token) and all(ch in SHELL_OPERATOR_CHARS for ch in token)


def has_redirection(tokens: list[str]) -> bool:
    """True if any operator token writes output somewhere (>, >>, &>, >&, ...)."""
    return any(_is_operator(tok) and ">" in tok for tok in tokens)


def is_denied(tokens: list[str]) -> bool:
    """True if the tokens contain anything from the deny-list."""
    if has_redirection(tokens):
        return True

    words = [tok.strip("`'\"").lower() for tok in tokens]
    command_position = True
    for word in words:
        if _is_operator(word):
            command_position = True
            continue
        # /bin/rm is still rm when it is the verb
        verb = os.path.basename(word) if command_position else word
        if verb in PRIVILEGE_PREFIXES or verb in DENIED_TOKENS or word in DENIED_TOKENS:
            return True
        command_position = False

    for pair in zip(words, words[1:]):
        if pair in DENIED_SEQUENCES:
            return True
    return False


def is_script_execution(tokens: list[str]) -> bool:
    """Check if the tokens run a script file."""
    if not tokens:
        return False
    first = tokens[0]
    if first.startswith("./"):
        return True
    if first in SCRIPT_INTERPRETERS:
        return len(tokens) > 1 and not tokens[1].startswith("-")
    return os.path.splitext(first)[1] in SCRIPT_EXTENSIONS


def is_allowed(tokens: list[str]) -> bool:
    """True if the leading verb is on the allow-list.

    Matching is case-sensitive: the line runs exactly as typed, and ``LS`` is
    not ``ls`` on most systems.
    """
    if not tokens:
        return False
    first = tokens[0]
    if first in SAFE_VERBS:
        return True
    if len(tokens) > 1 and (first, tokens[1]) in SAFE_NAMESPACED:
        return True
    return is_script_execution(tokens)


def direct_command_text(text: str, tokens: list[str]) -> str:
    """The command actually run for a direct input.

    A plain ``ls`` becomes ``ls -l``; a bare script name is run through its
    interpreter (``deploy.py`` -> ``python3 deploy.py``).
    """
    if text == "ls":
        return "ls -l"
    if len(tokens) == 1:
        interpreter = SCRIPT_EXTENSIONS.get(os.path.splitext(tokens[0])[1])
        if interpreter:
            return f"{interpreter} {text}"
    return text


def classify(line: str) -> Classification:
    """Classify a raw input line. Never raises."""
    text = line.strip()
    if not text:
        return Classification(InputKind.BLANK)

    shortcut = SHORTCUTS.get(text.lower())
    if shortcut is not None:
        return Classification(InputKind.SHORTCUT, text, shortcut)

    try:
        tokens = tokenize(text)
    except ValueError:
        # Unbalanced quotes and the like: let the model sort it out
        return Classification(InputKind.GENERATE, text)

    if not tokens or is_denied(tokens) or not is_allowed(tokens):
        return Classification(InputKind.GENERATE, text)

    return Classification(InputKind.DIRECT, direct_command_text(text, tokens))
