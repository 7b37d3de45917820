"""Shared shopping lists built from recipes, with share links and live updates."""

__version__ = "1.0.0"
