"""
docvec - vector index engine with embedding providers and a SQLite
document store for conversation threads.
"""

__version__ = "0.1.0"
