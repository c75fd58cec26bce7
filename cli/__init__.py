"""Command line interface for fcnet."""
