"""Command line tools for evlkeypad."""
