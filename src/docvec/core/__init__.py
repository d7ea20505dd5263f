"""
Configuration, document store and search service.
"""
