"""Command-line interface for the snapshot tool."""
