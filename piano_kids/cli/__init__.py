"""Command-line interface for Piano Kids."""
