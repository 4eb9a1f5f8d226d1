"""Command-line interface for opaque-session."""
