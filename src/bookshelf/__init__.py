"""Bookshelf service.

Books are stored in a relational database and mirrored into a full-text
search index. Writes go to the database first and then to the index.
"""

__version__ = "0.1.0"
