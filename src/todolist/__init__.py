"""Headless to-do list core: local task store plus one-time remote seeding."""

__version__ = "0.1.0"
