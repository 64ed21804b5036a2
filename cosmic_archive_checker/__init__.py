"""Checks whether the latest Cosmic Reach build is already in the Cosmic Archive."""

__version__ = "0.1.0"
