"""Storyshelf: data access for serialized fiction on Firebase."""

__version__ = "0.1.0"
