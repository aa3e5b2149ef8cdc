"""Simulated working directory shared across stateless command runs."""

import logging
import os
from pathlib import Path

from .exceptions import DirectoryNavigationError

logger = logging.getLogger(__name__)


class WorkingDirectory:
    """The session's current directory.

    Every command runs in a fresh process, so ``cd`` is simulated here instead
    of being executed. The value is always an absolute path and only changes
    on a successful ``change_to``. The real process cwd is left alone.
    """

    def __init__(self, start: str | Path | None = None, home: str | Path | None = None):
        self._path = Path(start).resolve() if start is not None else Path.cwd()
        self.home = Path(home).resolve() if home is not None else Path.home()

    @property
    def path(self) -> str:
        return str(self._path)

    def __str__(self) -> str:
        return self.path

    def __repr__(self) -> str:
        return f"<WorkingDirectory path={self.path!r}>"

    def resolve(self, target: str | None) -> Path:
        """Resolve a cd target against the current directory.

        No target (or ``~``) means the home directory.
        """
        if not target or target == "~":
            return self.home
        if target.startswith("~/"):
            return (self.home / target[2:]).resolve()
        path = Path(target)
        if not path.is_absolute():
            path = self._path / path
        return path.resolve()

    def change_to(self, target: str | None) -> str:
        """Change directory and return the new absolute path.

        Raises:
            DirectoryNavigationError: If the target does not exist or is not a directory
        """
        new_path = self.resolve(target)
        if not new_path.exists():
            raise DirectoryNavigationError(f"Directory not found: {new_path}", path=str(new_path))
        if not new_path.is_dir():
            raise DirectoryNavigationError(f"Not a directory: {new_path}", path=str(new_path))
        if not os.access(new_path, os.X_OK):
            raise DirectoryNavigationError(f"Permission denied: {new_path}", path=str(new_path))

        logger.debug(f"Working directory {self._path} -> {new_path}")
        self._path = new_path
        return self.path

    def display_name(self) -> str:
        """Short form for the prompt: ``~``, ``~/leaf``, ``leaf`` or ``/``."""
        home = str(self.home)
        current = self.path
        if current == home:
            return "~"
        if current.startswith(home.rstrip("/") + "/"):
            return f"~/{self._path.name}"
        return self._path.name or "/"
