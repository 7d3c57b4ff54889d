"""Vibey: an autonomous coding agent core for local language models."""

__version__ = "0.3.0"
