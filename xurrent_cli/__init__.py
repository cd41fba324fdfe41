"""Command-line filter and query builder for the Xurrent GraphQL API.

The command surface is implemented with Typer and Rich for better help and
error ergonomics, while filter and query documents written to stdout remain
machine-friendly so they can be piped between commands.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
