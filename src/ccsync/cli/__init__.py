"""Command-line interface for ccsync."""
