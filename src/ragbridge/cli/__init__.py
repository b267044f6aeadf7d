"""Command-line query tools."""
