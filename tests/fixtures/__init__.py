"""Shared pytest fixtures for the data layer, the search index and the API."""

from .books import *  # noqa: F401,F403
from .core import *  # noqa: F401,F403
