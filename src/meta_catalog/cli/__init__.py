"""Command line interface for meta-catalog."""
