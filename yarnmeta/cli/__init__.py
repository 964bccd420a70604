"""yarnmeta CLI: Typer-based command-line interface.

Provides the ``yarnmeta`` command with subcommands for listing eligible
upstream versions, generating the verified metadata record for one
version, and batch-retrieving every version a buildpack does not ship yet.

Human-facing output uses Rich; machine-facing output is plain JSON.
"""
