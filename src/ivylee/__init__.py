"""Command line tasks following the Ivy Lee method."""

__version__ = "0.1.0"
