"""Command line interface for mdautoimage."""
