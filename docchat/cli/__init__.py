"""Command-line tools for offline document administration."""
