"""Chip inventory handling, squad layout solving and a command line tool."""

__version__ = "2.0.0"