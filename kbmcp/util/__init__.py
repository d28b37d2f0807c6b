"""Utility helpers shared across kbmcp modules."""
