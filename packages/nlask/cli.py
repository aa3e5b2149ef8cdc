"""Command-line entry point for ``ask``."""

import argparse
import logging
import os
import sys

from .config import get_config, load_preferences, nlask_home, save_preferences
from .exceptions import ConfigurationError
from .session import Session
from .theme import ERROR_COLOR, RESET, ThemeMode

logger = logging.getLogger(__name__)

EPILOG = """
Interactive mode:
  Run without a prompt to start a session. Inside a session:
    q, exit, quit   leave the session
    .               print the working directory
    ..              go up one directory
    finder          open the working directory in the file browser
    clear           forget the session context and clear the screen

Confirmation answers:
  Y  run the command (default)
  n  cancel the remaining commands
  s  skip this command
  i  run a different command first, then decide

Examples:
  ask list files modified today
  ask --theme light
"""


def setup_logging():
    """Send logs to ~/.ask/ask.log so they never mix with terminal output."""
    home = nlask_home()
    level = os.getenv("NLASK_LOG_LEVEL", "WARNING").upper()
    try:
        home.mkdir(parents=True, exist_ok=True)
        handlers = [logging.FileHandler(home / "ask.log")]
    except OSError:
        handlers = [logging.NullHandler()]
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
        handlers=handlers,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ask",
        description="Turn natural-language requests into shell commands, with confirmation before anything runs",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--model",
        type=str,
        help="Model to use (default: $OPENROUTER_ASK_MODEL or meta-llama/llama-3.3-70b-instruct)"
    )
    parser.add_argument(
        "--theme",
        choices=[mode.value for mode in ThemeMode],
        help="Colour theme; the choice is saved for future sessions"
    )
    parser.add_argument(
        "prompt",
        nargs="*",
        help="Request to run once and exit; omit for interactive mode"
    )
    return parser


def persist_theme(mode: ThemeMode):
    prefs = load_preferences()
    prefs.theme = mode
    try:
        save_preferences(prefs)
    except OSError as e:
        logger.warning(f"Could not save theme preference: {e}")
        print(f"Warning: could not save theme preference: {e}", file=sys.stderr)


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)
    setup_logging()

    theme = None
    if args.theme:
        theme = ThemeMode(args.theme)
        persist_theme(theme)

    try:
        config = get_config(model=args.model, theme=theme)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(f"{ERROR_COLOR}Error: {e}{RESET}", file=sys.stderr)
        sys.exit(1)

    logger.info(f"Starting with model {config.model}, shell {config.shell}")
    session = Session(config)

    if args.prompt:
        sys.exit(session.run_once(" ".join(args.prompt)))

    session.run()


if __name__ == "__main__":
    main()
