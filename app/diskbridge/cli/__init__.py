"""Command-line interface for diskbridge."""
