"""Command-line front end: settings, on-disk resources and the kuruma CLI."""

__version__ = "0.1.0"
