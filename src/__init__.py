"""Bookshelf source tree: the service package and its command line."""

__version__ = "0.1.0"
