"""Capture a remote presentation viewer slide by slide into a single PDF."""

__version__ = "0.1.0"
