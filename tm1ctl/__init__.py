"""Command-line control utility for TM1 v12 hosts, instances, databases, users and restores."""

__version__ = "0.1.0"