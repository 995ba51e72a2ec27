"""Dicekeep: authoritative server for a room-based dice and castle game."""

__version__ = "0.1.0"
