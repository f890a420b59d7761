"""buildwatch CLI: Typer-based command-line interface.

Provides the ``buildwatch`` command with ``watch`` and ``build``
subcommands.  Summaries use Rich; progress and errors go through the
``buildwatch`` logger.
"""
