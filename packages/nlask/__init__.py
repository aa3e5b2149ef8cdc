"""nlask: a natural-language front end for the shell."""

__version__ = "1.0.0"
